"""Async HTTP client for the chat service.

Thin transport wrapper: every call returns a validated pydantic model or
raises one of the `chatcore.errors` types.

Usage:
------
async with ChatApiClient("https://chat.example.com") as api:
    login = await api.login("a@b.com", "pw")
    reply = await api.get_response(login.access_token, "hi", None, login.username)
"""

import time
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from chatcore.api_clients.chat_api.models import (
    ChatReply,
    DeleteChatResponse,
    HistoryResponse,
    LoginResponse,
)
from chatcore.errors import (
    AuthError,
    MalformedResponseError,
    ServerError,
    TransportError,
    error_detail,
)
from chatcore.session.models import User
from chatcore.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_TIMEOUT_SECONDS = 30.0
AUTH_FAILURE_STATUSES = (401, 403)

LOGIN_PATH = "/login"
USER_PATH = "/user"
DELETE_ACCOUNT_PATH = "/delete_account"
HISTORY_PATH = "/history"
DELETE_CHAT_PATH = "/delete_chat/{history_id}"
GET_RESPONSE_PATH = "/get_response"


class ChatApiClient:
    """Client for the chat service REST API.

    Attributes:
        base_url: Service root, e.g. "http://localhost:5000"
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Service root URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "ChatApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # =========================================================================
    # Endpoints
    # =========================================================================

    async def login(self, email: str, password: str) -> LoginResponse:
        """POST /login with credentials.

        Raises:
            AuthError: Credentials rejected
            TransportError, ServerError, MalformedResponseError
        """
        response = await self._request(
            "POST", LOGIN_PATH, json={"email": email, "password": password}
        )
        if response.status_code in AUTH_FAILURE_STATUSES:
            detail = error_detail(self._safe_json(response))
            error = AuthError.invalid_credentials(status_code=response.status_code)
            if detail:
                error = AuthError(detail, status_code=response.status_code)
            raise error
        return self._parse(response, LoginResponse, LOGIN_PATH)

    async def get_user(self, token: str) -> User:
        """GET /user for the token's owner."""
        response = await self._request("GET", USER_PATH, token=token)
        return self._parse(response, User, USER_PATH)

    async def delete_account(self, token: str) -> None:
        """DELETE /delete_account; any 2xx counts as success."""
        response = await self._request("DELETE", DELETE_ACCOUNT_PATH, token=token)
        self._raise_for_status(response)

    async def get_history(self, token: str) -> HistoryResponse:
        """GET /history for the token's owner."""
        response = await self._request("GET", HISTORY_PATH, token=token)
        return self._parse(response, HistoryResponse, HISTORY_PATH)

    async def delete_chat(self, token: str, history_id: int) -> DeleteChatResponse:
        """DELETE /delete_chat/{history_id}.

        Returns the acknowledgement as sent; callers must check `success`.
        """
        path = DELETE_CHAT_PATH.format(history_id=history_id)
        response = await self._request("DELETE", path, token=token)
        return self._parse(response, DeleteChatResponse, path)

    async def get_response(
        self,
        token: str,
        message: str,
        history_id: Optional[int],
        username: Optional[str],
    ) -> ChatReply:
        """POST /get_response with one user utterance.

        Args:
            token: Bearer token
            message: User text
            history_id: Conversation to continue, or None for a new one
            username: Display name sent alongside the message
        """
        payload = {"message": message, "history_id": history_id, "username": username}
        response = await self._request("POST", GET_RESPONSE_PATH, json=payload, token=token)
        return self._parse(response, ChatReply, GET_RESPONSE_PATH)

    # =========================================================================
    # HTTP plumbing
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        start = time.perf_counter()
        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except (httpx.TimeoutException, httpx.RequestError) as e:
            logger.warning(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise TransportError.from_exception(e) from e

        elapsed = time.perf_counter() - start
        logger.debug(f"{method} {path} -> {response.status_code} in {elapsed:.3f}s")
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        body = self._safe_json(response)
        path = response.request.url.path
        if response.status_code in AUTH_FAILURE_STATUSES:
            logger.warning(f"{path} rejected the token (status {response.status_code})")
            raise AuthError.token_rejected(response.status_code, error_detail(body))

        error = ServerError.from_status(response.status_code, body)
        logger.error(f"{path} returned {response.status_code}: {error.message}")
        raise error

    def _parse(self, response: httpx.Response, model: Type[ModelT], endpoint: str) -> ModelT:
        self._raise_for_status(response)
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Malformed response from {endpoint}: {e}")
            raise MalformedResponseError.from_validation(endpoint, e) from e

    @staticmethod
    def _safe_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None
