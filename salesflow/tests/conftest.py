"""Shared test fixtures.

API tests run against an in-memory document store injected through
``app.dependency_overrides``, so no ERPNext server is needed.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from salesflow.app.api.deps import get_document_store, get_today
from salesflow.app.core.exceptions import PersistenceError
from salesflow.app.main import app
from salesflow.app.models.documents import (
    DocumentStatus,
    DocumentType,
    PricingParameters,
    SalesDocument,
)
from salesflow.app.models.ledger import DocumentLedger

TODAY = date(2025, 3, 10)

_PREFIX = {
    DocumentType.QUOTATION: "SAL-QTN",
    DocumentType.SALES_ORDER: "SAL-ORD",
    DocumentType.DELIVERY_NOTE: "MAT-DN",
}


# ─── In-memory store ──────────────────────────────────────────────────────────


class InMemoryStore:
    """Document store double.  Stores value copies, like a real backend."""

    def __init__(self, prices: dict[str, Decimal] | None = None) -> None:
        self.documents: dict[tuple[DocumentType, str], SalesDocument] = {}
        self.prices = prices or {}
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self._counter = 0

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise PersistenceError(f"{operation} failed", status_code=500)

    def fetch_document(self, document_type: DocumentType, document_id: str) -> SalesDocument:
        self.calls.append(("fetch", document_id))
        self._check("fetch")
        try:
            return self.documents[(document_type, document_id)].model_copy(deep=True)
        except KeyError:
            raise PersistenceError(
                f"{document_type.value} {document_id} not found", status_code=404
            )

    def create_document(self, document_type: DocumentType, document: SalesDocument) -> str:
        self._check("create")
        self._counter += 1
        name = f"{_PREFIX[document_type]}-{self._counter:05d}"
        stored = document.model_copy(deep=True)
        stored.id = name
        self.documents[(document_type, name)] = stored
        self.calls.append(("create", name))
        return name

    def update_document(
        self, document_type: DocumentType, document_id: str, document: SalesDocument
    ) -> None:
        self.calls.append(("update", document_id))
        self._check("update")
        if (document_type, document_id) not in self.documents:
            raise PersistenceError(f"{document_id} not found", status_code=404)
        self.documents[(document_type, document_id)] = document.model_copy(deep=True)

    def fetch_catalog_price(self, item_reference: str) -> Decimal:
        self.calls.append(("price", item_reference))
        self._check("price")
        if item_reference not in self.prices:
            raise PersistenceError(f"Item {item_reference} not found", status_code=404)
        return self.prices[item_reference]

    def list_documents(self, document_type: DocumentType, limit: int = 50) -> list[SalesDocument]:
        self._check("list")
        docs = [d for (t, _), d in self.documents.items() if t == document_type]
        return [d.model_copy(deep=True) for d in docs[:limit]]

    def put(self, document: SalesDocument) -> SalesDocument:
        """Seed a stored document directly, bypassing create()."""
        assert document.id is not None
        self.documents[(document.document_type, document.id)] = document.model_copy(deep=True)
        return document


# ─── Builders ─────────────────────────────────────────────────────────────────


def make_ledger(*lines: tuple[int, str]) -> DocumentLedger:
    """Ledger from ``(quantity, unit_price)`` pairs; items are ITEM-1, ITEM-2, ..."""
    ledger = DocumentLedger()
    for i, (qty, price) in enumerate(lines, start=1):
        ledger.add_line(f"ITEM-{i}", quantity=qty, unit_price=Decimal(price))
    return ledger


def make_quotation(
    status: DocumentStatus = DocumentStatus.DRAFT,
    *,
    id: str | None = "SAL-QTN-2025-00001",
    valid_until: date | None = TODAY + timedelta(days=30),
    ledger: DocumentLedger | None = None,
    pricing: PricingParameters | None = None,
) -> SalesDocument:
    return SalesDocument(
        id=id,
        document_type=DocumentType.QUOTATION,
        customer_reference="CUST-0001",
        currency="BDT",
        transaction_date=TODAY - timedelta(days=5),
        status=status,
        ledger=ledger if ledger is not None else make_ledger((2, "100"), (1, "50")),
        pricing=pricing or PricingParameters(),
        valid_until=valid_until,
    )


def make_sales_order(
    status: DocumentStatus = DocumentStatus.CONFIRMED,
    *,
    id: str | None = "SAL-ORD-2025-00001",
) -> SalesDocument:
    return SalesDocument(
        id=id,
        document_type=DocumentType.SALES_ORDER,
        customer_reference="CUST-0001",
        currency="BDT",
        transaction_date=TODAY - timedelta(days=2),
        status=status,
        ledger=make_ledger((3, "40"), (1, "15.50")),
        pricing=PricingParameters(tax_rate_percent=Decimal("5")),
        linked_source_id="SAL-QTN-2025-00001",
    )


def make_delivery_note(status: DocumentStatus = DocumentStatus.DRAFT) -> SalesDocument:
    return SalesDocument(
        id="MAT-DN-2025-00001",
        document_type=DocumentType.DELIVERY_NOTE,
        customer_reference="CUST-0001",
        currency="BDT",
        transaction_date=TODAY,
        status=status,
        ledger=make_ledger((3, "40")),
        linked_source_id="SAL-ORD-2025-00001",
    )


# ─── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore(
        prices={"ITEM-1": Decimal("100"), "ITEM-2": Decimal("50"), "ITEM-3": Decimal("12.75")}
    )


@pytest.fixture()
def client(store: InMemoryStore) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the in-memory store and a fixed date."""
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_today] = lambda: TODAY
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
