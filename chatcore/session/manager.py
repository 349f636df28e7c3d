"""Authentication state owner.

The SessionManager is the only writer of the session state. Other components
receive the manager itself and read `session` snapshots or call
`require_token()`.

Lifecycle:
- login(): credentials -> token persisted -> authenticated -> fetch_user_data()
- restore(): persisted token -> fetch_user_data() -> authenticated
- logout(): persisted session keys removed (best effort) -> anonymous
- fetch_user_data(): an authorization failure logs out, then re-raises
- delete_account(): remote deletion -> logout()
"""

from typing import Callable, List, Optional

from chatcore.api_clients.chat_api.client import ChatApiClient
from chatcore.errors import AuthError, ChatClientError, NoTokenError, StorageError
from chatcore.session.models import ANONYMOUS, Session, User
from chatcore.storage.base import KeyValueStore
from chatcore.storage.keys import SESSION_KEYS, USER_ID_KEY, USER_TOKEN_KEY, USERNAME_KEY
from chatcore.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)

SessionListener = Callable[[Session], None]


class SessionManager:
    """Owns the token and user identity and keeps them in durable storage.

    Attributes:
        api: Chat service client
        store: Durable key-value store
    """

    def __init__(self, api: ChatApiClient, store: KeyValueStore):
        self.api = api
        self.store = store
        self._session: Session = ANONYMOUS
        self._listeners: List[SessionListener] = []

    # =========================================================================
    # Read side
    # =========================================================================

    @property
    def session(self) -> Session:
        """Current snapshot; immutable."""
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def token(self) -> Optional[str]:
        return self._session.token

    @property
    def user(self) -> Optional[User]:
        return self._session.user

    def require_token(self) -> str:
        """Return the token or raise NoTokenError."""
        token = self._session.token
        if not token:
            raise NoTokenError()
        return token

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a callback for session changes.

        Args:
            listener: Called with the new snapshot after every change

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Operations
    # =========================================================================

    async def login(self, email: str, password: str) -> Session:
        """Authenticate with email and password.

        On success the token, user id and username are persisted, the session
        becomes authenticated and the user profile is fetched immediately.

        Raises:
            AuthError: Missing or rejected credentials
            TransportError, ServerError, MalformedResponseError: Login request failed
        """
        email = (email or "").strip()
        if not email or not password:
            raise AuthError("Email and password are required")

        try:
            result = await self.api.login(email, password)
        except ChatClientError as e:
            logger.error(f"Login failed: {e}")
            raise

        try:
            await self.store.set_item(USER_TOKEN_KEY, result.access_token)
            await self.store.set_item(USER_ID_KEY, result.user_id)
            await self.store.set_item(USERNAME_KEY, result.username)
        except StorageError as e:
            # The in-memory session stays valid; only restart recovery is lost.
            logger.error(f"Failed to persist session: {e}")

        self._set_session(
            Session(
                is_authenticated=True,
                token=result.access_token,
                user=User(id=result.user_id, username=result.username, email=email),
            )
        )
        logger.info("Logged in", extra={"user_id": result.user_id})

        await self.fetch_user_data()
        return self._session

    async def restore(self) -> Session:
        """Adopt a persisted token at startup and validate it with the server.

        Without a stored token the session stays anonymous. An authorization
        failure logs out (via fetch_user_data); other failures keep the token
        for a later retry, leave the session unauthenticated and re-raise.
        """
        token = await self.store.get_item(USER_TOKEN_KEY)
        if not token:
            logger.debug("No persisted session")
            return self._session

        user_id = await self.store.get_item(USER_ID_KEY)
        username = await self.store.get_item(USERNAME_KEY)
        user = User(id=user_id, username=username) if user_id and username else None
        self._set_session(Session(is_authenticated=False, token=token, user=user))

        await self.fetch_user_data()
        logger.info("Restored persisted session", extra={"user_id": user_id})
        return self._session

    async def logout(self) -> None:
        """Drop the session. Never fails: storage errors are only logged."""
        try:
            await self.store.multi_remove(SESSION_KEYS)
        except Exception as e:
            logger.error(f"Logout failed to clear stored session: {e}", exc_info=True)
        finally:
            self._set_session(ANONYMOUS)
        logger.info("Logged out")

    async def fetch_user_data(self) -> User:
        """Fetch the profile of the token's owner.

        A successful fetch marks the token as accepted by the server.

        Raises:
            NoTokenError: No session token
            AuthError: Token rejected; the session has been logged out
            TransportError, ServerError, MalformedResponseError
        """
        token = self.require_token()
        try:
            user = await self.api.get_user(token)
        except AuthError as e:
            logger.warning(f"Failed to fetch user data, logging out: {e}")
            await self.logout()
            raise
        except ChatClientError as e:
            logger.error(f"Failed to fetch user data: {e}")
            raise

        if self._session.token != token:
            # Logged out or re-logged in while the request was in flight.
            logger.warning("Discarding user data for a superseded token")
            return user

        self._set_session(Session(is_authenticated=True, token=token, user=user))
        return user

    async def delete_account(self) -> None:
        """Delete the account remotely, then log out.

        Raises:
            NoTokenError: No session token
            ChatClientError: Deletion failed; the session is untouched
        """
        token = self.require_token()
        try:
            await self.api.delete_account(token)
        except ChatClientError as e:
            logger.error(f"Failed to delete account: {e}")
            raise
        logger.info("Account deleted")
        await self.logout()

    # =========================================================================
    # Internals
    # =========================================================================

    def _set_session(self, session: Session) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logger.warning("Session listener failed", exc_info=True)
