from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from salesflow.app.api.deps import get_document_store, get_today
from salesflow.app.core.exceptions import PersistenceError
from salesflow.app.schemas.documents import QuotationSummaryOut
from salesflow.app.services.documents import quotation_dashboard
from salesflow.app.services.store import DocumentStore

router = APIRouter()


@router.get("/quotations", response_model=QuotationSummaryOut)
def get_quotation_summary(
    limit: int = Query(50, ge=1, le=500),
    store: DocumentStore = Depends(get_document_store),
    today: date = Depends(get_today),
) -> dict:
    try:
        return quotation_dashboard(store, today, limit=limit)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
