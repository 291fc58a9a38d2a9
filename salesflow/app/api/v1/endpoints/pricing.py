from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from salesflow.app.core.config import settings
from salesflow.app.models.ledger import DocumentLedger
from salesflow.app.schemas.documents import TotalsOut, TotalsRequest
from salesflow.app.services.pricing import compute_totals

router = APIRouter()


@router.post("/totals", response_model=TotalsOut)
def preview_totals(payload: TotalsRequest) -> dict:
    """Totals for an unsaved form.  Every line must carry its unit price."""
    ledger = DocumentLedger()
    try:
        for line in payload.lines:
            ledger.add_line(
                line.item_reference,
                quantity=line.quantity,
                unit_price=line.unit_price,
                description=line.description,
            )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    totals = compute_totals(ledger, payload.pricing)
    currency = payload.currency or settings.DEFAULT_CURRENCY
    return {name: str(value) for name, value in totals.rounded(currency)}
