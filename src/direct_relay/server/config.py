from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime config for the relay.

    - Loaded from environment variables (prefix `RELAY_`)
    - Also reads `.env` if present (via pydantic-settings + python-dotenv)
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="RELAY_", extra="ignore")

    host: str = "0.0.0.0"
    # Plain PORT is honoured too, for hosts that inject it.
    port: int = Field(default=8080, validation_alias=AliasChoices("RELAY_PORT", "PORT"))

    # What happens when an already-named connection sends another registration:
    # reject -> error frame, name unchanged
    # rebind -> release old name and claim the new one in one step
    # ignore -> no reply, name unchanged
    reregister_policy: Literal["reject", "rebind", "ignore"] = "reject"

    # Frames matching neither request shape are dropped silently unless this is set.
    strict_frames: bool = False

    # Per-connection queue of frames waiting to be written.
    outbox_size: int = Field(default=256, ge=1)

    # On shutdown, how long queued frames get to be written before sockets close.
    shutdown_flush_s: float = Field(default=1.0, ge=0)

    # Logging
    log_level: str = "INFO"
    debug_log_msgs: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
