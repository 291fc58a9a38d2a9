from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from salesflow.app.core.exceptions import InvalidStateForConversion
from salesflow.app.models.documents import DocumentStatus, DocumentType, SalesDocument
from salesflow.app.services.lifecycle import ensure_can_convert
from salesflow.app.services.pricing import default_pricing
from salesflow.app.services.validity import as_date

logger = logging.getLogger(__name__)


def convert(
    source: SalesDocument,
    target_type: DocumentType,
    now: date | datetime | None = None,
) -> SalesDocument:
    """Seed an unsaved draft of ``target_type`` from ``source``.

    Customer, currency and a value copy of the lines are carried over.  Unit
    prices are the negotiated ones on the source, never re-read from the
    catalog.  Pricing parameters are reset to the target type's defaults, so
    tax and discount are computed afresh.
    """
    ensure_can_convert(source, target_type)
    if source.id is None:
        raise InvalidStateForConversion(
            f"{source.document_type.value} has not been saved yet",
            remedy="Save it first, then retry.",
        )

    today = as_date(now or datetime.now(timezone.utc))
    target = SalesDocument(
        document_type=target_type,
        customer_reference=source.customer_reference,
        currency=source.currency,
        transaction_date=today,
        status=DocumentStatus.DRAFT,
        ledger=source.ledger.value_copy(),
        pricing=default_pricing(target_type),
        delivery_date=today if target_type == DocumentType.SALES_ORDER else None,
        linked_source_id=source.id,
    )

    logger.info(
        "Converted %s %s to %s draft (%d lines)",
        source.document_type.value,
        source.id,
        target_type.value,
        len(target.ledger),
    )
    return target
