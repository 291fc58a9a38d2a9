"""Document status transitions and the actions they allow.

The machine only answers "is this legal?" and applies a status change to a
local document.  It never persists, and it never submits a document as a
side effect of a conversion request.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from salesflow.app.core.exceptions import (
    DocumentExpired,
    DocumentLocked,
    InvalidStateForConversion,
    InvalidTransition,
    UnsupportedConversion,
)
from salesflow.app.models.documents import DocumentStatus, DocumentType, SalesDocument
from salesflow.app.services.validity import Validity, classify

logger = logging.getLogger(__name__)

S = DocumentStatus

TRANSITIONS: dict[DocumentType, dict[DocumentStatus, frozenset[DocumentStatus]]] = {
    DocumentType.QUOTATION: {
        S.DRAFT: frozenset({S.SENT, S.APPROVED}),
        S.SENT: frozenset({S.APPROVED, S.REJECTED}),
        S.APPROVED: frozenset({S.CONVERTED_TO_ORDER}),
        S.REJECTED: frozenset(),
        S.CONVERTED_TO_ORDER: frozenset(),
    },
    DocumentType.SALES_ORDER: {
        S.DRAFT: frozenset({S.CONFIRMED, S.CANCELLED}),
        S.CONFIRMED: frozenset({S.PARTIALLY_FULFILLED, S.FULFILLED, S.CANCELLED}),
        S.PARTIALLY_FULFILLED: frozenset({S.FULFILLED, S.CANCELLED}),
        S.FULFILLED: frozenset(),
        S.CANCELLED: frozenset(),
    },
    DocumentType.DELIVERY_NOTE: {
        S.DRAFT: frozenset({S.SUBMITTED, S.CANCELLED}),
        S.SUBMITTED: frozenset({S.COMPLETED, S.CANCELLED}),
        S.COMPLETED: frozenset(),
        S.CANCELLED: frozenset(),
    },
}

# Status entered by a plain "submit" from Draft.
SUBMIT_TARGET: dict[DocumentType, DocumentStatus] = {
    DocumentType.QUOTATION: S.SENT,
    DocumentType.SALES_ORDER: S.CONFIRMED,
    DocumentType.DELIVERY_NOTE: S.SUBMITTED,
}

# The only legal conversions: source type -> target type.
SUCCESSORS: dict[DocumentType, DocumentType] = {
    DocumentType.QUOTATION: DocumentType.SALES_ORDER,
    DocumentType.SALES_ORDER: DocumentType.DELIVERY_NOTE,
}

CONVERTIBLE_STATUSES: dict[DocumentType, frozenset[DocumentStatus]] = {
    DocumentType.QUOTATION: frozenset({S.APPROVED}),
    DocumentType.SALES_ORDER: frozenset({S.CONFIRMED, S.PARTIALLY_FULFILLED}),
}

# Entered only as the result of a conversion, never by a plain status change.
CONVERSION_ONLY_STATUSES = frozenset({S.CONVERTED_TO_ORDER})


def allowed_transitions(document: SalesDocument) -> frozenset[DocumentStatus]:
    return TRANSITIONS[document.document_type][document.status]


def is_terminal(document: SalesDocument) -> bool:
    return not allowed_transitions(document)


def can_transition(document: SalesDocument, target: DocumentStatus) -> bool:
    return target in allowed_transitions(document)


def transition(document: SalesDocument, target: DocumentStatus) -> SalesDocument:
    if target in CONVERSION_ONLY_STATUSES:
        raise InvalidTransition(
            f"'{target.value}' is set by converting the {document.document_type.value.lower()}, "
            "not by a status change",
            remedy="Convert it to a Sales Order instead.",
        )
    return _apply(document, target)


def _apply(document: SalesDocument, target: DocumentStatus) -> SalesDocument:
    if not can_transition(document, target):
        allowed = ", ".join(
            sorted(s.value for s in allowed_transitions(document) - CONVERSION_ONLY_STATUSES)
        ) or "none"
        raise InvalidTransition(
            f"{document.document_type.value} cannot move from "
            f"'{document.status.value}' to '{target.value}' (allowed: {allowed})",
        )
    logger.info(
        "%s %s: %s -> %s",
        document.document_type.value,
        document.id or "<unsaved>",
        document.status.value,
        target.value,
    )
    document.status = target
    return document


def submit(document: SalesDocument, target: DocumentStatus | None = None) -> SalesDocument:
    """Submit a draft.  Quotations may be submitted straight to Approved."""
    if document.status != S.DRAFT:
        raise InvalidTransition(
            f"Only draft documents can be submitted; this one is '{document.status.value}'",
        )
    return transition(document, target or SUBMIT_TARGET[document.document_type])


def cancel(document: SalesDocument) -> SalesDocument:
    return transition(document, S.CANCELLED)


def mark_converted(document: SalesDocument) -> SalesDocument:
    """Record a successful Sales Order conversion on an approved quotation."""
    return _apply(document, S.CONVERTED_TO_ORDER)


def open_for_edit(document: SalesDocument, now: date | datetime) -> SalesDocument:
    if is_terminal(document):
        logger.warning(
            "Edit blocked: %s %s is '%s'",
            document.document_type.value,
            document.id,
            document.status.value,
        )
        label = " ".join(filter(None, [document.document_type.value, document.id]))
        raise DocumentLocked(
            f"{label} is '{document.status.value}' and can no longer be edited",
            remedy="View it read-only.",
        )
    if classify(document, now) == Validity.EXPIRED:
        logger.warning("Edit blocked: quotation %s expired on %s", document.id, document.valid_until)
        label = f"Quotation {document.id}" if document.id else "Quotation"
        raise DocumentExpired(
            f"{label} expired on {document.valid_until}",
            remedy="View it read-only, or create a new quotation for this customer.",
        )
    return document


def ensure_can_convert(document: SalesDocument, target_type: DocumentType) -> None:
    if SUCCESSORS.get(document.document_type) != target_type:
        raise UnsupportedConversion(
            f"Cannot convert {document.document_type.value} to {target_type.value}",
            remedy=_successor_hint(document.document_type),
        )
    if document.status not in CONVERTIBLE_STATUSES[document.document_type]:
        required = " or ".join(
            sorted(s.value for s in CONVERTIBLE_STATUSES[document.document_type])
        )
        logger.warning(
            "Conversion blocked: %s %s is '%s'",
            document.document_type.value,
            document.id,
            document.status.value,
        )
        if document.status == S.DRAFT:
            remedy = f"Submit the {document.document_type.value.lower()} first, then retry."
        else:
            remedy = f"Mark it {required} first, then retry."
        raise InvalidStateForConversion(
            f"{document.document_type.value} must be {required} before it can be "
            f"converted; it is '{document.status.value}'",
            remedy=remedy,
        )


def can_convert(document: SalesDocument, target_type: DocumentType) -> bool:
    return (
        SUCCESSORS.get(document.document_type) == target_type
        and document.status in CONVERTIBLE_STATUSES[document.document_type]
    )


def available_actions(document: SalesDocument, now: date | datetime) -> list[str]:
    """Actions the UI may offer for ``document`` right now."""
    actions: list[str] = ["view"]
    if not is_terminal(document) and classify(document, now) != Validity.EXPIRED:
        actions.append("edit")
    if document.status == S.DRAFT:
        actions.append("submit")
    if can_transition(document, S.CANCELLED):
        actions.append("cancel")
    successor = SUCCESSORS.get(document.document_type)
    if successor is not None and can_convert(document, successor):
        actions.append("convert")
    return actions


def _successor_hint(document_type: DocumentType) -> str:
    successor = SUCCESSORS.get(document_type)
    if successor is None:
        return f"A {document_type.value} is the last step and cannot be converted."
    return f"A {document_type.value} can only be converted to a {successor.value}."
