"""Shared fixtures: an in-process fake chat service and stores.

The fake service is served through httpx.MockTransport, so no test touches
the network.
"""

import json
import os
import tempfile
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

# Keep test log files out of the working tree.
os.environ.setdefault("CHATBOT_LOG_DIR", tempfile.mkdtemp(prefix="chatbot-test-logs-"))

from chatcore.api_clients.chat_api.client import ChatApiClient
from chatcore.errors import StorageError
from chatcore.storage.memory_store import MemoryKeyValueStore

BASE_URL = "http://chat.test"

Route = Tuple[str, str]


class FakeChatService:
    """Minimal stand-in for the chat service endpoints.

    Attributes:
        accounts: email -> password, user_id, username
        valid_tokens: token -> user payload returned by GET /user
        chat_history: list returned by GET /history
        requests: every request received, in order
        overrides: (method, path) -> handler replacing the default route
    """

    def __init__(self):
        self.accounts: Dict[str, Dict[str, str]] = {
            "a@b.com": {"password": "pw", "user_id": "U1", "username": "bob"},
        }
        self.issued_token = "T1"
        self.valid_tokens: Dict[str, Dict[str, Any]] = {}
        self.chat_history: List[Dict[str, Any]] = [
            {"history_id": 9, "chat": [{"user": "What is the capital of France?", "ai": "Paris"}]},
            {"history_id": 7, "chat": [{"user": "hello", "ai": "hi there"}]},
        ]
        self.next_history_id = 42
        self.requests: List[httpx.Request] = []
        self.overrides: Dict[Route, Callable[[httpx.Request], httpx.Response]] = {}

    # -- test controls ------------------------------------------------------

    def accept_token(self, token: str = "T1", user_id: str = "U1", username: str = "bob",
                     email: str = "a@b.com") -> None:
        self.valid_tokens[token] = {"id": user_id, "username": username, "email": email}

    def respond(self, method: str, path: str, status_code: int = 200,
                json_body: Any = None, content: Optional[bytes] = None) -> None:
        """Make (method, path) return a fixed response."""

        def handler(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status_code, content=content)
            return httpx.Response(status_code, json=json_body)

        self.overrides[(method, path)] = handler

    def fail(self, method: str, path: str, exc_type=httpx.ConnectError) -> None:
        """Make (method, path) raise a transport error."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type("connection refused", request=request)

        self.overrides[(method, path)] = handler

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    # -- routing ------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = (request.method, request.url.path)
        if route in self.overrides:
            return self.overrides[route](request)

        path = request.url.path
        if route == ("POST", "/login"):
            return self._login(request)

        user = self._authorized_user(request)
        if user is None:
            return httpx.Response(401, json={"msg": "Token has expired"})

        if route == ("GET", "/user"):
            return httpx.Response(200, json=user)
        if route == ("DELETE", "/delete_account"):
            self.valid_tokens.pop(self._bearer(request), None)
            return httpx.Response(200, json={"message": "Account deleted"})
        if route == ("GET", "/history"):
            return httpx.Response(200, json={"chat_history": self.chat_history})
        if request.method == "DELETE" and path.startswith("/delete_chat/"):
            return self._delete_chat(int(path.rsplit("/", 1)[1]))
        if route == ("POST", "/get_response"):
            return self._get_response(request)
        return httpx.Response(404, json={"error": "Not found"})

    def _login(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        account = self.accounts.get(body.get("email"))
        if account is None or account["password"] != body.get("password"):
            return httpx.Response(401, json={"error": "Invalid credentials"})
        self.accept_token(self.issued_token, account["user_id"], account["username"], body["email"])
        return httpx.Response(
            200,
            json={
                "access_token": self.issued_token,
                "user_id": account["user_id"],
                "username": account["username"],
            },
        )

    def _delete_chat(self, history_id: int) -> httpx.Response:
        before = len(self.chat_history)
        self.chat_history = [c for c in self.chat_history if c["history_id"] != history_id]
        return httpx.Response(200, json={"success": len(self.chat_history) < before})

    def _get_response(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        history_id = body.get("history_id") or self.next_history_id
        return httpx.Response(
            200, json={"response": f"echo: {body['message']}", "history_id": str(history_id)}
        )

    @staticmethod
    def _bearer(request: httpx.Request) -> Optional[str]:
        header = request.headers.get("Authorization", "")
        return header[len("Bearer "):] if header.startswith("Bearer ") else None

    def _authorized_user(self, request: httpx.Request) -> Optional[Dict[str, Any]]:
        return self.valid_tokens.get(self._bearer(request) or "")


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose writes and/or removals can be made to fail."""

    def __init__(self, initial=None, fail_writes: bool = False, fail_removes: bool = False,
                 fail_reads: bool = False):
        super().__init__(initial)
        self.fail_writes = fail_writes
        self.fail_removes = fail_removes
        self.fail_reads = fail_reads

    async def get_item(self, key):
        if self.fail_reads:
            raise StorageError(f"read of {key} failed")
        return await super().get_item(key)

    async def set_item(self, key, value):
        if self.fail_writes:
            raise StorageError(f"write of {key} failed")
        await super().set_item(key, value)

    async def remove_item(self, key):
        if self.fail_removes:
            raise StorageError(f"remove of {key} failed")
        await super().remove_item(key)

    async def multi_remove(self, keys):
        if self.fail_removes:
            raise StorageError("multi remove failed")
        await super().multi_remove(keys)


@pytest.fixture
def service():
    """Fresh fake chat service."""
    return FakeChatService()


@pytest.fixture
def transport(service):
    return httpx.MockTransport(service.handler)


@pytest_asyncio.fixture
async def api(transport):
    """ChatApiClient wired to the fake service."""
    client = ChatApiClient(BASE_URL, timeout=5.0, transport=transport)
    yield client
    await client.aclose()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def flaky_store():
    """Factory for FlakyStore instances."""
    return FlakyStore
