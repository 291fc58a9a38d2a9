from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status

from salesflow.app.api.deps import get_document_store, get_today
from salesflow.app.core.exceptions import LifecycleError, PersistenceError
from salesflow.app.models.documents import SalesDocument
from salesflow.app.models.ledger import DocumentLedger
from salesflow.app.schemas.documents import (
    ConvertRequest,
    DocumentCreate,
    DocumentKind,
    DocumentOut,
    DocumentUpdate,
    LineIn,
    StatusUpdate,
)
from salesflow.app.services.documents import (
    add_catalog_line,
    change_status,
    convert_and_save,
    document_to_dict,
    load_for_edit,
    new_draft,
    save_document,
)
from salesflow.app.services.store import DocumentStore

router = APIRouter()


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, PersistenceError):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, LifecycleError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": exc.code, "message": str(exc), "remedy": exc.remedy},
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _build_ledger(
    store: DocumentStore, document: SalesDocument, lines: list[LineIn]
) -> DocumentLedger:
    """Fill a fresh ledger on ``document``; lines without a price use the catalog."""
    document.ledger = DocumentLedger()
    for line in lines:
        if line.unit_price is None:
            add_catalog_line(store, document, line.item_reference, line.quantity, line.description)
        else:
            document.ledger.add_line(
                line.item_reference,
                quantity=line.quantity,
                unit_price=line.unit_price,
                description=line.description,
            )
    return document.ledger


@router.post("/{kind}", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def create_document(
    kind: DocumentKind,
    payload: DocumentCreate,
    store: DocumentStore = Depends(get_document_store),
    today: date = Depends(get_today),
) -> dict:
    try:
        document = new_draft(
            kind.document_type,
            payload.customer_reference,
            currency=payload.currency,
            transaction_date=payload.transaction_date,
            valid_until=payload.valid_until,
            delivery_date=payload.delivery_date,
            now=today,
        )
        if payload.pricing is not None:
            document.pricing = payload.pricing
        _build_ledger(store, document, payload.lines)
        save_document(store, document)
    except (ValueError, PersistenceError) as e:
        raise _http_error(e)
    return document_to_dict(document, today)


@router.get("/{kind}/{document_id}", response_model=DocumentOut)
def get_document(
    kind: DocumentKind,
    document_id: str,
    store: DocumentStore = Depends(get_document_store),
    today: date = Depends(get_today),
) -> dict:
    try:
        document = store.fetch_document(kind.document_type, document_id)
    except PersistenceError as e:
        raise _http_error(e)
    return document_to_dict(document, today)


@router.put("/{kind}/{document_id}", response_model=DocumentOut)
def update_document(
    kind: DocumentKind,
    document_id: str,
    payload: DocumentUpdate,
    store: DocumentStore = Depends(get_document_store),
    today: date = Depends(get_today),
) -> dict:
    try:
        document = load_for_edit(store, kind.document_type, document_id, today)
        changes: dict = {}
        if payload.pricing is not None:
            changes["pricing"] = payload.pricing
        if payload.valid_until is not None:
            changes["valid_until"] = payload.valid_until
        if payload.delivery_date is not None:
            changes["delivery_date"] = payload.delivery_date
        updated = SalesDocument.model_validate(document.model_dump() | changes)
        if payload.lines is not None:
            _build_ledger(store, updated, payload.lines)
        save_document(store, updated)
    except (ValueError, PersistenceError) as e:
        raise _http_error(e)
    return document_to_dict(updated, today)


@router.post("/{kind}/{document_id}/transitions", response_model=DocumentOut)
def post_transition(
    kind: DocumentKind,
    document_id: str,
    payload: StatusUpdate,
    store: DocumentStore = Depends(get_document_store),
    today: date = Depends(get_today),
) -> dict:
    try:
        document = store.fetch_document(kind.document_type, document_id)
        change_status(store, document, payload.status)
    except (ValueError, PersistenceError) as e:
        raise _http_error(e)
    return document_to_dict(document, today)


@router.post(
    "/{kind}/{document_id}/convert",
    response_model=DocumentOut,
    status_code=status.HTTP_201_CREATED,
)
def post_convert(
    kind: DocumentKind,
    document_id: str,
    payload: ConvertRequest,
    store: DocumentStore = Depends(get_document_store),
    today: date = Depends(get_today),
) -> dict:
    try:
        source = store.fetch_document(kind.document_type, document_id)
        target = convert_and_save(store, source, payload.target.document_type, now=today)
    except (ValueError, PersistenceError) as e:
        raise _http_error(e)
    return document_to_dict(target, today)
