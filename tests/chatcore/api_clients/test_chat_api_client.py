"""Tests for ChatApiClient request shapes and error mapping."""

import json

import httpx
import pytest

from chatcore.errors import (
    MALFORMED_RESPONSE_MESSAGE,
    AuthError,
    MalformedResponseError,
    ServerError,
    TransportError,
)


@pytest.mark.asyncio
async def test_login_posts_credentials(api, service):
    """POST /login carries email and password and returns the token payload."""
    result = await api.login("a@b.com", "pw")

    assert result.access_token == "T1"
    assert result.user_id == "U1"
    assert result.username == "bob"
    sent = service.calls("POST", "/login")[0]
    assert json.loads(sent.content) == {"email": "a@b.com", "password": "pw"}
    assert "Authorization" not in sent.headers


@pytest.mark.asyncio
async def test_login_numeric_user_id_normalized(api, service):
    service.respond(
        "POST", "/login", json_body={"access_token": "T9", "user_id": 17, "username": "amy"}
    )

    result = await api.login("amy@b.com", "pw")

    assert result.user_id == "17"


@pytest.mark.asyncio
async def test_login_rejected_raises_auth_error(api):
    """Bad credentials surface the server's error text."""
    with pytest.raises(AuthError) as exc_info:
        await api.login("a@b.com", "wrong")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_rejected_without_body_uses_default_message(api, service):
    service.respond("POST", "/login", status_code=401, content=b"")

    with pytest.raises(AuthError, match="Invalid email or password"):
        await api.login("a@b.com", "pw")


@pytest.mark.asyncio
async def test_bearer_header_sent(api, service):
    service.accept_token("T1")

    await api.get_user("T1")

    assert service.calls("GET", "/user")[0].headers["Authorization"] == "Bearer T1"


@pytest.mark.asyncio
async def test_expired_token_raises_auth_error(api):
    with pytest.raises(AuthError) as exc_info:
        await api.get_user("stale")

    assert exc_info.value.status_code == 401
    assert "Token has expired" in exc_info.value.message


@pytest.mark.asyncio
async def test_server_error_uses_body_error_field(api, service):
    service.accept_token("T1")
    service.respond("POST", "/get_response", status_code=500, json_body={"error": "Model overloaded"})

    with pytest.raises(ServerError) as exc_info:
        await api.get_response("T1", "hi", None, "bob")

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Model overloaded"


@pytest.mark.asyncio
async def test_server_error_without_body_reports_status(api, service):
    service.accept_token("T1")
    service.respond("DELETE", "/delete_account", status_code=503, content=b"<html>down</html>")

    with pytest.raises(ServerError, match=r"HTTP error! status: 503"):
        await api.delete_account("T1")


@pytest.mark.asyncio
async def test_transport_failure_raises_transport_error(api, service):
    service.fail("GET", "/history", httpx.ConnectError)

    with pytest.raises(TransportError) as exc_info:
        await api.get_history("T1")

    assert isinstance(exc_info.value.original_error, httpx.ConnectError)


@pytest.mark.asyncio
async def test_timeout_raises_transport_error(api, service):
    service.fail("POST", "/get_response", httpx.ReadTimeout)

    with pytest.raises(TransportError, match="ReadTimeout"):
        await api.get_response("T1", "hi", None, "bob")


@pytest.mark.asyncio
async def test_non_json_success_body_is_malformed(api, service):
    service.accept_token("T1")
    service.respond("GET", "/history", content=b"not json")

    with pytest.raises(MalformedResponseError):
        await api.get_history("T1")


@pytest.mark.asyncio
async def test_missing_reply_field_is_malformed(api, service):
    service.accept_token("T1")
    service.respond("POST", "/get_response", json_body={"history_id": 3})

    with pytest.raises(MalformedResponseError) as exc_info:
        await api.get_response("T1", "hi", None, "bob")

    # User-facing text stays generic; the endpoint is kept for logs.
    assert exc_info.value.message == MALFORMED_RESPONSE_MESSAGE
    assert "/get_response" not in exc_info.value.message
    assert exc_info.value.endpoint == "/get_response"


@pytest.mark.asyncio
async def test_get_response_payload_and_history_id_parsing(api, service):
    """The request carries message, history_id and username; ids come back as int."""
    service.accept_token("T1")

    reply = await api.get_response("T1", "hi", 5, "bob")

    assert reply.response == "echo: hi"
    assert reply.history_id == 5
    sent = json.loads(service.calls("POST", "/get_response")[0].content)
    assert sent == {"message": "hi", "history_id": 5, "username": "bob"}


@pytest.mark.asyncio
async def test_get_response_without_history_id(api, service):
    service.accept_token("T1")
    service.respond("POST", "/get_response", json_body={"response": "hello"})

    reply = await api.get_response("T1", "hi", None, None)

    assert reply.history_id is None


@pytest.mark.asyncio
async def test_get_history_parses_entries(api, service):
    service.accept_token("T1")

    result = await api.get_history("T1")

    assert [entry.history_id for entry in result.chat_history] == [9, 7]
    assert result.chat_history[1].chat[0].ai == "hi there"


@pytest.mark.asyncio
async def test_delete_chat_returns_ack(api, service):
    service.accept_token("T1")

    ok = await api.delete_chat("T1", 7)
    missing = await api.delete_chat("T1", 7)

    assert ok.success is True
    assert missing.success is False
    assert service.calls("DELETE", "/delete_chat/7")
