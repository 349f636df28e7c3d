"""Reserved keys in the durable key-value space."""

USER_TOKEN_KEY = "userToken"
USER_ID_KEY = "userId"
USERNAME_KEY = "username"
HISTORY_ID_KEY = "historyId"

# Keys owned by the session manager and removed on logout.
SESSION_KEYS = (USER_TOKEN_KEY, USER_ID_KEY, USERNAME_KEY)
