"""
Stash - Centralized Configuration
==================================
Uses ``pydantic-settings`` (``BaseSettings``) to load *all* configuration
from environment variables and the project-level ``.env`` file.

Security
--------
- ``MONGO_PASSWORD`` is typed as ``SecretStr`` and has **no default value**.
  If it is missing at startup, Pydantic will raise a ``ValidationError``
  with a clear error message.  The raw value is never exposed in repr,
  logs, or tracebacks.
- ``MONGO_TLS`` defaults to ``True``; the store is only ever reached
  over an encrypted transport unless explicitly disabled (local dev).

Store Target
------------
``MONGO_HOSTS`` is a JSON list of ``host:port`` seed addresses.  The
driver performs its own primary/replica selection among them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings.

    Every field is loaded from environment variables (or ``.env``).
    Fields *without* a default are **required** — the app will refuse
    to start until they are provided.

    Attributes
    ----------
    ENV : Literal["dev", "prod"]
        Environment mode controlling logging verbosity.
    MONGO_HOSTS : list[str]
        Replica-set seed list, each entry ``host:port``.
    MONGO_USERNAME : str
        Store user name.
    MONGO_PASSWORD : SecretStr
        Store password.  **Required.**
        Access the raw value with ``settings.MONGO_PASSWORD.get_secret_value()``.
    MONGO_AUTH_SOURCE : str
        Database the credentials are defined in.
    MONGO_TLS : bool
        Dial every seed address over TLS.
    MONGO_DB_NAME : str
        Database holding the payload collection.
    MONGO_COLLECTION : str
        Collection payload records are written to and read from.
    MONGO_SERVER_SELECTION_TIMEOUT_MS : int
        How long the driver waits for a usable server before failing.
    LISTEN_HOST : str
        Interface the HTTP server binds to.
    LISTEN_PORT : int
        TCP port the HTTP server listens on.
    """

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"

    # ── MongoDB Target ─────────────────────────────────────────────────
    MONGO_HOSTS: list[str] = [
        "abc-shard-00-00.gcp.mongodb.net:27017",
        "abc-shard-00-01.gcp.mongodb.net:27017",
        "abc-shard-00-02.gcp.mongodb.net:27017",
    ]
    MONGO_TLS: bool = True
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 30_000

    # ── MongoDB Credentials (password REQUIRED — no default) ───────────
    MONGO_USERNAME: str = "MongoUser"
    MONGO_PASSWORD: SecretStr
    MONGO_AUTH_SOURCE: str = "admin"

    # ── MongoDB Namespace ──────────────────────────────────────────────
    MONGO_DB_NAME: str = "test"
    MONGO_COLLECTION: str = "data"

    # ── HTTP Listener ──────────────────────────────────────────────────
    LISTEN_HOST: str = "0.0.0.0"
    LISTEN_PORT: int = 8080

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("MONGO_HOSTS")
    @classmethod
    def _hosts_well_formed(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("MONGO_HOSTS must contain at least one host:port address")
        for address in v:
            host, sep, port = address.rpartition(":")
            if not sep or not host or not port.isdigit():
                raise ValueError(f"MONGO_HOSTS entry must be host:port, got {address!r}")
            if not 1 <= int(port) <= 65535:
                raise ValueError(f"MONGO_HOSTS port must be 1–65535, got {address!r}")
        return v


    @field_validator("LISTEN_PORT")
    @classmethod
    def _port_range(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"LISTEN_PORT must be 1–65535, got {v}")
        return v


    @field_validator("MONGO_SERVER_SELECTION_TIMEOUT_MS")
    @classmethod
    def _timeout_floor(cls, v: int) -> int:
        if v < 100:
            raise ValueError(f"MONGO_SERVER_SELECTION_TIMEOUT_MS must be ≥ 100, got {v}")
        return v

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent.parent / ".env", env_file_encoding="utf-8", extra="ignore")


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from stash.config.settings import settings
settings = Settings()
