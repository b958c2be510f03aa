"""
Claims Backend HTTP Client

Thin wrapper around a ``requests.Session`` that adds the bearer token,
unwraps error bodies and reacts to expired sessions.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, TypeVar, Union

import requests
from pydantic import BaseModel

from claims_portal.config import get_settings
from claims_portal.core.exceptions import ApiError, NetworkError, UnauthorizedError
from claims_portal.core.models import ApiResponse

from .resources import AttachmentsApi, AuthApi, ClaimsApi, NotesApi, ReportsApi, UsersApi

logger = logging.getLogger(__name__)

M = TypeVar("M")

QueryParams = Union[Dict[str, Any], Sequence[Tuple[str, str]], None]


def extract_error_message(response: Any, default: str) -> str:
    """Pull a readable message out of an error response body."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, list) and value:
                # FastAPI validation errors: [{"loc": [...], "msg": "..."}]
                first = value[0]
                if isinstance(first, dict) and first.get("msg"):
                    return str(first["msg"])
    return default


class ApiClient:
    """
    Client for the claims REST API.

    Args:
        base_url: Backend root, defaults to the configured API URL
        token: Bearer token of the logged-in user, if any
        timeout: Per-request timeout in seconds
        session: Object with a ``requests.Session``-compatible ``request`` method
        on_unauthorized: Called after a 401 response cleared the token
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        on_unauthorized: Optional[Callable[[], None]] = None
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.session = session if session is not None else requests.Session()
        self.token = token
        self.on_unauthorized = on_unauthorized

        self.auth = AuthApi(self)
        self.claims = ClaimsApi(self)
        self.attachments = AttachmentsApi(self)
        self.notes = NotesApi(self)
        self.reports = ReportsApi(self)
        self.users = UsersApi(self)

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: QueryParams = None,
        json: Optional[Any] = None
    ) -> Any:
        """
        Send a request and return the decoded JSON body (None when empty).

        Raises:
            UnauthorizedError: On HTTP 401; the token has been cleared
            ApiError: On any other non-2xx status
            NetworkError: If the backend cannot be reached
        """
        url = self.url_for(path)
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(f"Cannot reach the claims service: {e}") from e

        return self.handle_response(method, url, response)

    def handle_response(self, method: str, url: str, response: Any) -> Any:
        status_code = response.status_code

        if status_code == 401:
            logger.warning(f"{method} {url} returned 401, clearing session token")
            self.token = None
            if self.on_unauthorized:
                self.on_unauthorized()
            raise UnauthorizedError(
                extract_error_message(response, "Your session has expired. Please log in again."),
                status_code=401
            )

        if status_code >= 400:
            message = extract_error_message(response, f"Request failed with status {status_code}")
            logger.warning(f"{method} {url} returned {status_code}: {message}")
            payload = None
            try:
                body = response.json()
                payload = body if isinstance(body, dict) else None
            except ValueError:
                pass
            raise ApiError(message, status_code=status_code, payload=payload)

        if status_code == 204 or not response.content:
            return None
        return response.json()

    def get(self, path: str, params: QueryParams = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Optional[Any] = None) -> Any:
        return self.request("POST", path, json=json)

    def patch(self, path: str, json: Optional[Any] = None) -> Any:
        return self.request("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    @staticmethod
    def unwrap(body: Any, model: Type[M]) -> M:
        """Validate an ``{data, message, success}`` envelope and return its data."""
        return ApiResponse[model].model_validate(body).data

    @staticmethod
    def unwrap_list(body: Any, model: Type[BaseModel]) -> List[Any]:
        return ApiResponse[List[model]].model_validate(body).data
