"""Global node settings"""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Centralized configuration.
    Reads configs from env variables.
    """

    app_name: str = "Chat Sync Node"
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    log_level: str = "INFO"

    # Debounce window for typing presence. The reference client resends every
    # keystroke and clears after 1s; the margin absorbs network jitter.
    typing_window_ms: int = 1000
    typing_margin_ms: int = 250

    outbound_queue_size: int = 256
    slow_consumer_policy: Literal["drop_oldest", "disconnect"] = "drop_oldest"

    model_config = {"env_file": ".env"}

    @property
    def typing_expiry_seconds(self) -> float:
        return (self.typing_window_ms + self.typing_margin_ms) / 1000


settings = Settings()
