from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from salesflow.app.models.documents import DocumentType, SalesDocument


class DocumentStore(Protocol):
    """Backend that persists sales documents.

    Implementations raise ``PersistenceError`` for any failure.  Its
    ``status_code`` is 404 when the document or item does not exist.
    """

    def fetch_document(self, document_type: DocumentType, document_id: str) -> SalesDocument: ...

    def create_document(self, document_type: DocumentType, document: SalesDocument) -> str: ...

    def update_document(
        self, document_type: DocumentType, document_id: str, document: SalesDocument
    ) -> None: ...

    def fetch_catalog_price(self, item_reference: str) -> Decimal: ...

    def list_documents(self, document_type: DocumentType, limit: int = 50) -> list[SalesDocument]: ...
