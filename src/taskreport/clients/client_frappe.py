# taskreport/clients/client_frappe.py
"""
Frappe REST client
------------------
Thin wrapper over the `/api/resource/<DocType>` list endpoint:
 - token authentication from Settings
 - JSON-encoded field projection and filter triples
 - offset pagination (limit_start / limit_page_length)
 - optional retry on timeouts and connection errors
"""

import json
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote

import requests

import taskreport.core.logger as logger
from taskreport.core.config import Settings


class BackendError(Exception):
    """Raised when the backend cannot be reached or answers with an error."""


def chunk(items: Sequence, size: int = 200) -> List[list]:
    """Split `items` into consecutive lists of at most `size` elements."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    items = list(items)
    return [items[i:i + size] for i in range(0, len(items), size)]


class FrappeClient:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"token {settings.token}",
                "Accept": "application/json",
            }
        )

    def _resource_url(self, doctype: str) -> str:
        return f"{self.settings.base_url}/api/resource/{quote(doctype)}"

    def _get(self, url: str, params: Dict[str, Any]) -> dict:
        retries = self.settings.retries
        for attempt in range(retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.settings.timeout)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exc:
                if attempt >= retries:
                    raise BackendError(f"Request to {url} failed: {exc}") from exc
                backoff = 0.5 * (2 ** attempt)
                logger.log(f"Retrying in {backoff:.1f}s after: {exc}", style="yellow", verbose_only=True)
                time.sleep(backoff)
                continue

            if response.status_code != 200:
                raise BackendError(f"Backend error {response.status_code} for {url}: {response.text[:500]}")
            try:
                payload = response.json()
            except ValueError as exc:
                raise BackendError(f"Backend returned non-JSON payload for {url}") from exc
            if not isinstance(payload, dict) or "data" not in payload:
                raise BackendError(f"Unexpected payload for {url}: missing 'data'")
            return payload
        raise BackendError(f"Request to {url} failed")

    def get_list(
        self,
        doctype: str,
        fields: Iterable[str],
        filters: Optional[List[list]] = None,
        order_by: Optional[Dict[str, str]] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """
        Fetch records of `doctype` matching `filters` ([field, operator, value] triples).
        Pages through the result until a short page is returned or `limit` rows are read.
        """
        url = self._resource_url(doctype)
        page_size = self.settings.page_size
        params: Dict[str, Any] = {
            "fields": json.dumps(list(fields)),
            "filters": json.dumps(filters or [], ensure_ascii=False),
        }
        if order_by:
            params["order_by"] = f"{order_by['field']} {order_by.get('order', 'asc')}"

        rows: List[dict] = []
        start = 0
        while True:
            length = page_size if limit is None else min(page_size, limit - len(rows))
            if length <= 0:
                break
            params["limit_start"] = start
            params["limit_page_length"] = length
            logger.log(f"GET {doctype} offset={start} filters={filters}", verbose_only=True)

            batch = self._get(url, params)["data"] or []
            rows.extend(batch)
            if len(batch) < length:
                break
            start += len(batch)

        logger.log(f"Fetched {len(rows)} {doctype} record(s)", verbose_only=True)
        return rows
