"""
HR backend REST client

Wraps a shared requests.Session. Attaches the bearer token, refuses to
send an expired one, and turns failures into typed exceptions. It never
touches storage or navigation; the caller decides what an error means.
"""

import logging
import time
from typing import Any, Callable, Optional

import requests

from hrms_portal.utils.token import TOKEN_EXPIRY_BUFFER_MS, is_token_expired

logger = logging.getLogger(__name__)

class ApiError(Exception):
    """Backend request failed"""

    def __init__(self, status_code: Optional[int] = None, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail or f"Backend request failed (status={status_code})")

class SessionExpiredError(ApiError):
    """Credential expired locally or rejected by the backend with 401"""

class BackendUnavailableError(ApiError):
    """Backend could not be reached"""

def extract_detail(response: requests.Response) -> Optional[str]:
    """
    Pull the error message out of a backend error response.
    FastAPI validation errors arrive as a list of {loc, msg, type}.
    """
    try:
        body = response.json()
    except ValueError:
        return None

    if not isinstance(body, dict):
        return None

    detail = body.get("detail")
    if isinstance(detail, str):
        return detail or None
    if isinstance(detail, list):
        messages = [
            item.get("msg") if isinstance(item, dict) else str(item)
            for item in detail
        ]
        messages = [m for m in messages if m]
        return "; ".join(messages) or None
    return None

class ApiClient:
    """
    Client for one browser's calls to the backend.

    Args:
        base_url: Backend API root, e.g. https://host/api
        token: Bearer token of the signed-in user, if any
        session: Shared requests.Session (connection pooling)
        timeout: Request timeout in seconds
        clock: Returns the current time in seconds since epoch
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
        buffer_ms: int = TOKEN_EXPIRY_BUFFER_MS
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.clock = clock
        self.buffer_ms = buffer_ms

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            if is_token_expired(self.token, now=self.clock(), buffer_ms=self.buffer_ms):
                logger.info("Request aborted: token expired")
                raise SessionExpiredError(status_code=None, detail="Token expired")
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            SessionExpiredError: Token expired before sending, or 401 reply
            BackendUnavailableError: Connection error or timeout
            ApiError: Any other non-2xx reply
        """
        headers = self._headers()
        url = f"{self.base_url}/{path.lstrip('/')}"

        try:
            response = self.session.request(
                method,
                url,
                json=json,
                headers=headers,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Backend unreachable: {method} {url} - {str(e)}")
            raise BackendUnavailableError(detail=None) from e

        if response.status_code == 401:
            logger.warning(f"Backend rejected credentials: {method} {url}")
            raise SessionExpiredError(status_code=401, detail=extract_detail(response))

        if not response.ok:
            detail = extract_detail(response)
            logger.warning(f"Backend error {response.status_code}: {method} {url} - {detail}")
            raise ApiError(status_code=response.status_code, detail=detail)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Backend returned invalid JSON: {method} {url}")
            raise ApiError(status_code=response.status_code, detail=None) from e

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, json: Optional[dict] = None) -> Any:
        return self.request("POST", path, json=json)
