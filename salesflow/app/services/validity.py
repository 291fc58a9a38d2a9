"""Quotation validity window classification.

Expiry is evaluated at read time and is advisory: nothing here writes a
status back onto the document.
"""

from __future__ import annotations

import enum
from datetime import date, datetime

from salesflow.app.core.config import settings
from salesflow.app.models.documents import DocumentStatus, DocumentType, SalesDocument

# Quotations in these states are settled and no longer expire.
SETTLED_QUOTATION_STATUSES = frozenset({
    DocumentStatus.APPROVED,
    DocumentStatus.REJECTED,
    DocumentStatus.CONVERTED_TO_ORDER,
})


class Validity(str, enum.Enum):
    ACTIVE = "Active"
    EXPIRING_SOON = "Expiring Soon"
    EXPIRED = "Expired"


def as_date(now: date | datetime) -> date:
    return now.date() if isinstance(now, datetime) else now


def days_until(valid_until: date, now: date | datetime) -> int:
    return (valid_until - as_date(now)).days


def classify(document: SalesDocument, now: date | datetime) -> Validity:
    if document.document_type != DocumentType.QUOTATION or document.valid_until is None:
        return Validity.ACTIVE

    remaining = days_until(document.valid_until, now)
    if remaining < 0 and document.status not in SETTLED_QUOTATION_STATUSES:
        return Validity.EXPIRED
    if 0 < remaining <= settings.EXPIRY_WARNING_DAYS and document.status == DocumentStatus.SENT:
        return Validity.EXPIRING_SOON
    return Validity.ACTIVE


def quotation_summary(documents: list[SalesDocument], now: date | datetime) -> dict:
    """Dashboard counts over a list of quotations."""
    quotations = [d for d in documents if d.document_type == DocumentType.QUOTATION]
    draft = sum(1 for q in quotations if q.status == DocumentStatus.DRAFT)
    return {
        "quotation_count": len(quotations),
        "draft_quotations": draft,
        "approved_quotations": sum(
            1 for q in quotations if q.status in SETTLED_QUOTATION_STATUSES - {DocumentStatus.REJECTED}
        ),
        "expiring_quotations": sum(
            1 for q in quotations if classify(q, now) == Validity.EXPIRING_SOON
        ),
        "expired_quotations": sum(
            1 for q in quotations if classify(q, now) == Validity.EXPIRED
        ),
    }
