from __future__ import annotations

from typing import Any, Dict, Optional
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_USER_AGENT = "shipment-buckets/0.1"


class RequestsTransport:
    """GET-only requests session for config endpoints.

    Transient failures (connect/read errors, 429 and 5xx) are retried with
    exponential backoff by urllib3 before the response reaches the caller.
    """

    def __init__(
        self,
        timeout: int = 10,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["User-Agent"] = user_agent

        retry = Retry(
            total=max_retries,
            connect=max_retries,
            read=max_retries,
            status=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset({"GET"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        for prefix in ("https://", "http://"):
            self.session.mount(prefix, adapter)

    def get(self, url: str, *, headers: Optional[Dict[str, str]] = None, params: Optional[Dict[str, Any]] = None):
        return self.session.get(url, headers=headers, params=params, timeout=self.timeout)

    def close(self) -> None:
        self.session.close()
