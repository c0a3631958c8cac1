"""
Reusable HTTP client with retry logic, timeout handling, and session management.
"""

import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Reusable HTTP client with retry logic, timeout handling,
    and session management for all backend API calls.
    Thread-safe enough for concurrent GETs from scheduler and request threads.
    """
    def __init__(self, timeout: int = 30):
        self.session = self._create_session()
        self.session.headers.update({"Accept": "application/json"})
        self.timeout = timeout

    def _create_session(self) -> requests.Session:
        """
        Creates a requests session with retry logic.
        """
        session = requests.Session()
        retry = Retry(
            total=3,
            read=3,
            connect=3,
            backoff_factor=0.3,
            status_forcelist=(500, 502, 503, 504),
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def api_request(self,
                    url: str,
                    api_key: Optional[str] = None,
                    params: Optional[Dict[str, Any]] = None,
                    method: str = "GET",
                    json_payload: Optional[Dict[str, Any]] = None,
                    timeout: Optional[int] = None) -> Any:
        """
        Generalized API request helper.

        Args:
            url: Full URL to request
            api_key: API key sent as X-Api-Key
            params: Query parameters
            method: HTTP method (GET, POST, PUT, DELETE)
            json_payload: JSON body for POST/PUT requests
            timeout: Custom timeout (overrides default)

        Returns:
            JSON response as dict/list, or success message

        Raises:
            requests.exceptions.HTTPError: On HTTP errors
            requests.exceptions.RequestException: On network errors
        """
        headers = {}
        if api_key:
            headers["X-Api-Key"] = api_key

        request_timeout = timeout if timeout is not None else self.timeout
        method = method.upper()
        if method not in ("GET", "POST", "PUT", "DELETE"):
            raise ValueError(f"Unsupported HTTP method: {method}")

        try:
            if method in ("POST", "PUT"):
                logger.debug(f"{method} {url} json={json_payload}")
                headers["Content-Type"] = "application/json"
                response = self.session.request(
                    method, url, headers=headers, params=params, json=json_payload, timeout=request_timeout
                )
            else:
                logger.debug(f"{method} {url} params={params}")
                response = self.session.request(method, url, headers=headers, params=params, timeout=request_timeout)

            response.raise_for_status()

            if response.status_code == 204 or not response.content:
                return {"status": "success", "message": f"Status Code {response.status_code}"}

            return response.json()

        except requests.exceptions.HTTPError as err:
            logger.error(f"API Request Failed for {method} {url}: {err}")
            if err.response is not None:
                logger.error(f"Response body: {err.response.text[:500]}")
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error on {method} {url}: {e}")
            raise

    def close(self):
        """Close the session and cleanup resources."""
        if self.session:
            self.session.close()
