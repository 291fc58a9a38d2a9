from __future__ import annotations

from collections.abc import Generator
from datetime import date, datetime, timezone

from salesflow.app.services.erpnext.client import ERPNextDocumentStore
from salesflow.app.services.store import DocumentStore


def get_document_store() -> Generator[DocumentStore, None, None]:
    store = ERPNextDocumentStore()
    try:
        yield store
    finally:
        store.close()


def get_today() -> date:
    """Reference date for validity checks and new documents."""
    return datetime.now(timezone.utc).date()
