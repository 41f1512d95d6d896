"""
HTTP client for the word-list and results services.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from config.settings import get_config

logger = logging.getLogger(__name__)


class ExperimentApiClient:
    """
    Thin wrapper over a ``requests.Session`` bound to the service base URL.

    The session keeps cookies between calls, so a results request carries
    any credentials the word-list request established. Responses are
    returned as-is; interpreting status codes and bodies is left to the
    loader and the submitter.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Parameters
        ----------
        base_url : Optional[str]
            Service base URL. Uses configuration if None.
        timeout : Optional[float]
            Request timeout in seconds. Uses configuration if None.
        session : Optional[requests.Session]
            Session to send requests through. A new one is created if None.
        """
        service = get_config().service
        self.base_url = (base_url or service.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else service.request_timeout
        self.words_path = service.words_path
        self.results_path = service.results_path
        self.session = session if session is not None else requests.Session()
        self.headers = {
            "Accept": "application/json",
            "User-Agent": "lexrt/1.0",
        }

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def get_words(self) -> requests.Response:
        """GET the word list."""
        url = self.url(self.words_path)
        logger.debug(f"GET {url}")
        return self.session.get(url, headers=self.headers, timeout=self.timeout)

    def post_results(self, body: Dict[str, Any]) -> requests.Response:
        """POST a results payload as JSON."""
        url = self.url(self.results_path)
        logger.debug(f"POST {url} ({len(body.get('results', []))} results)")
        return self.session.post(url, json=body, headers=self.headers, timeout=self.timeout)

    def close(self) -> None:
        self.session.close()


def is_success(response: requests.Response) -> bool:
    """Whether the service answered with a 2xx status."""
    return 200 <= response.status_code < 300
