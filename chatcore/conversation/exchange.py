"""Chat exchange: optimistic send and reconciliation.

One send appends the user's message immediately, then exactly one of:
- the assistant reply (and the returned conversation id goes to the tracker)
- a synthetic assistant-role error message describing the failure

The transcript is newest-first and lives only in memory.

Concurrent sends are not deduplicated. By default they race: each keeps its
own optimistic append and resolves independently, so replies may land out of
submission order. With `serialize_sends=True` the network calls are queued in
submission order instead.
"""

import asyncio
from typing import List, Optional

from chatcore.api_clients.chat_api.client import ChatApiClient
from chatcore.conversation.models import Message, SendOutcome
from chatcore.conversation.tracker import ConversationTracker
from chatcore.errors import ChatClientError, NoTokenError, describe_error
from chatcore.utils.logger import LoggerManager
from chatcore.utils.logger_context import with_context

logger = LoggerManager.get_logger(__name__)


class ChatExchangeEngine:
    """Sends user utterances and keeps the visible transcript.

    Attributes:
        api: Chat service client
        tracker: Receives conversation ids returned by the service
        input_buffer: Draft text; cleared as soon as a send is accepted
    """

    def __init__(
        self,
        api: ChatApiClient,
        tracker: ConversationTracker,
        serialize_sends: bool = False,
    ):
        self.api = api
        self.tracker = tracker
        self.input_buffer = ""
        self._transcript: List[Message] = []
        self._pending = 0
        self._closed = False
        self._send_lock: Optional[asyncio.Lock] = asyncio.Lock() if serialize_sends else None

    @property
    def transcript(self) -> List[Message]:
        """Newest-first copy of the transcript."""
        return list(self._transcript)

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    @property
    def closed(self) -> bool:
        return self._closed

    def clear(self) -> None:
        """Empty the transcript (new chat)."""
        self._transcript.clear()

    def close(self) -> None:
        """Stop applying results; replies arriving later are dropped."""
        self._closed = True

    async def submit(
        self,
        conversation_ref: Optional[int],
        token: Optional[str],
        username: Optional[str] = None,
    ) -> SendOutcome:
        """Send whatever is in the input buffer."""
        return await self.send(self.input_buffer, conversation_ref, token, username)

    async def send(
        self,
        text: Optional[str],
        conversation_ref: Optional[int],
        token: Optional[str],
        username: Optional[str] = None,
    ) -> SendOutcome:
        """Send one utterance.

        Args:
            text: User input; blank input is rejected without a request
            conversation_ref: Conversation to continue, or None for a new one
            token: Bearer token
            username: Display name sent with the message

        Returns:
            SendOutcome describing the reply or the failure

        Raises:
            NoTokenError: No token was supplied
            RuntimeError: The engine has been closed
        """
        text = (text or "").strip()
        if not text:
            return SendOutcome.blank_input()
        if not token:
            raise NoTokenError()
        if self._closed:
            raise RuntimeError("ChatExchangeEngine is closed")

        log = with_context(logger, history_id=conversation_ref)

        user_message = Message.user(text)
        self._transcript.insert(0, user_message)
        self.input_buffer = ""
        self._pending += 1

        try:
            if self._send_lock is not None:
                async with self._send_lock:
                    reply = await self.api.get_response(token, text, conversation_ref, username)
            else:
                reply = await self.api.get_response(token, text, conversation_ref, username)
        except ChatClientError as e:
            return self._fail(user_message, e, log)
        finally:
            self._pending -= 1

        if self._closed:
            log.warning("chat.send.discarded: reply arrived after close")
            return SendOutcome(
                success=True,
                user_message=user_message,
                reply=Message.assistant(reply.response),
                history_id=reply.history_id,
            )

        reply_message = Message.assistant(reply.response)
        self._transcript.insert(0, reply_message)

        if reply.history_id is not None:
            await self.tracker.save(reply.history_id)

        log.info("chat.send.ok", extra={"extra_data": {"new_history_id": reply.history_id}})
        return SendOutcome(
            success=True,
            user_message=user_message,
            reply=reply_message,
            history_id=reply.history_id,
        )

    def _fail(self, user_message: Message, error: ChatClientError, log) -> SendOutcome:
        text = describe_error(error)
        log.error(f"chat.send.failed: {type(error).__name__}: {text}")

        error_message = Message.error(text)
        if self._closed:
            log.warning("chat.send.discarded: failure arrived after close")
        else:
            self._transcript.insert(0, error_message)

        return SendOutcome(
            success=False,
            user_message=user_message,
            reply=error_message,
            error=text,
            error_type=type(error).__name__,
        )
