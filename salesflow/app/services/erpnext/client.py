"""ERPNext (Frappe) REST document store."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any
from urllib.parse import quote

import httpx

from salesflow.app.core.config import settings
from salesflow.app.core.exceptions import PersistenceError
from salesflow.app.models.documents import DocumentType, SalesDocument
from salesflow.app.services.erpnext.mapping import LIST_FIELDS, from_erpnext, to_erpnext

logger = logging.getLogger(__name__)


class ERPNextDocumentStore:
    """Blocking HTTP client for the Frappe ``/api/resource`` endpoints.

    One request per call, no retries.  Every failure (transport error,
    non-2xx status, unreadable body) surfaces as ``PersistenceError``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.ERPNEXT_BASE_URL).rstrip("/")
        self.api_key = settings.ERPNEXT_API_KEY if api_key is None else api_key
        self.api_secret = settings.ERPNEXT_API_SECRET if api_secret is None else api_secret
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ERPNextDocumentStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Document store contract ──────────────────────────────────────────

    def fetch_document(self, document_type: DocumentType, document_id: str) -> SalesDocument:
        data = self._request("GET", _resource_path(document_type.value, document_id))
        return self._decode(document_type, data.get("data") or {})

    def create_document(self, document_type: DocumentType, document: SalesDocument) -> str:
        data = self._request(
            "POST", _resource_path(document_type.value), json=to_erpnext(document)
        )
        name = (data.get("data") or {}).get("name")
        if not name:
            raise PersistenceError(f"ERPNext did not return a name for the new {document_type.value}")
        logger.info("Created %s %s", document_type.value, name)
        return name

    def update_document(
        self, document_type: DocumentType, document_id: str, document: SalesDocument
    ) -> None:
        self._request(
            "PUT", _resource_path(document_type.value, document_id), json=to_erpnext(document)
        )
        logger.info("Updated %s %s", document_type.value, document_id)

    def fetch_catalog_price(self, item_reference: str) -> Decimal:
        data = self._request("GET", _resource_path("Item", item_reference))
        rate = (data.get("data") or {}).get("standard_rate")
        return Decimal(str(rate or 0))

    def list_documents(self, document_type: DocumentType, limit: int = 50) -> list[SalesDocument]:
        data = self._request(
            "GET",
            _resource_path(document_type.value),
            params={
                "fields": json.dumps(LIST_FIELDS),
                "limit_page_length": limit,
                "order_by": "creation desc",
            },
        )
        return [self._decode(document_type, row) for row in data.get("data") or []]

    # ── Internals ────────────────────────────────────────────────────────

    def _auth_header(self) -> dict[str, str]:
        """Token auth using API key:secret."""
        if not self.api_key or not self.api_secret:
            raise PersistenceError("ERPNext credentials not configured")
        return {"Authorization": f"token {self.api_key}:{self.api_secret}"}

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        headers = {**self._auth_header(), "Accept": "application/json"}
        try:
            resp = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("ERPNext %s %s failed: %s", method, path, exc)
            raise PersistenceError(f"Could not reach ERPNext: {exc}") from exc
        return self._handle_response(resp)

    @staticmethod
    def _handle_response(resp: httpx.Response) -> dict[str, Any]:
        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.error("ERPNext returned %s: %s", resp.status_code, message)
            raise PersistenceError(message, status_code=resp.status_code)
        try:
            data: dict[str, Any] = resp.json()
        except ValueError:
            raise PersistenceError(
                f"Non-JSON response: {resp.text[:200] if resp.text else '(empty)'}",
                status_code=resp.status_code,
            )
        if not isinstance(data, dict):
            raise PersistenceError("Unexpected response shape from ERPNext", status_code=resp.status_code)
        return data

    @staticmethod
    def _decode(document_type: DocumentType, data: dict[str, Any]) -> SalesDocument:
        try:
            return from_erpnext(document_type, data)
        except (KeyError, ValueError) as exc:
            raise PersistenceError(
                f"Malformed {document_type.value} {data.get('name', '')}: {exc}"
            ) from exc


def _resource_path(doctype: str, name: str | None = None) -> str:
    path = f"/api/resource/{quote(doctype)}"
    if name is not None:
        path += f"/{quote(name, safe='')}"
    return path


def _error_message(resp: httpx.Response) -> str:
    """Best human-readable message from a Frappe error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if not isinstance(body, dict):
        return resp.text or f"HTTP {resp.status_code}"

    server_messages = body.get("_server_messages")
    if server_messages:
        try:
            first = json.loads(json.loads(server_messages)[0])
            return first.get("message") or str(first)
        except (ValueError, IndexError, TypeError, AttributeError):
            pass
    return (
        body.get("message")
        or body.get("exception")
        or body.get("exc_type")
        or f"HTTP {resp.status_code}"
    )
