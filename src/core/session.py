"""In memory session state (display name, typing flag and expiry timer)"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(eq=False)
class Session:
    """
    Binds one live connection to a display name.
    Names are not unique, identity is the connection id.
    """

    connection_id: str
    name: str
    is_typing: bool = False
    last_typing_signal_at: datetime | None = None
    expiry: asyncio.TimerHandle | None = field(default=None, repr=False)

    def cancel_expiry(self) -> None:
        """Cancels the pending typing expiry timer, if any."""
        if self.expiry is not None:
            self.expiry.cancel()
            self.expiry = None
