"""Error taxonomy for the sync core."""


class ChatError(Exception):
    """Base class for recoverable protocol errors.

    These never close a connection: the gateway reports them back to the
    originating client as an ``error`` frame.
    """

    code = "ChatError"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.code)
        self.detail = detail or self.code


class InvalidName(ChatError):
    """Join name is empty or whitespace."""

    code = "InvalidName"


class InvalidMessage(ChatError):
    """Message sender or body is empty."""

    code = "InvalidMessage"


class NotJoined(ChatError):
    """Protocol action issued before join."""

    code = "NotJoined"


class SessionNotFound(ChatError):
    """No session for the connection (usually a disconnect race)."""

    code = "SessionNotFound"


class MalformedFrame(ChatError):
    """Frame could not be decoded or routed."""

    code = "MalformedFrame"
