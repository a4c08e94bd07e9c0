"""
Tick Relay Configuration

Settings loaded from environment variables (or a .env file).
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .market.symbols import DEFAULT_SYMBOLS


class Settings(BaseSettings):
    """Tick Relay settings.

    TICK_SOURCE=metaapi (default) requires METAAPI_TOKEN and METAAPI_ACCOUNT_ID;
    TICK_SOURCE=simulator needs no credentials.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Upstream Configuration
    metaapi_token: str = ""
    metaapi_account_id: str = ""
    tick_source: Literal["metaapi", "simulator"] = "metaapi"
    sync_timeout: float = 300.0

    # Service Configuration
    port: int = 8080
    log_level: str = "INFO"
    cors_origins: Annotated[tuple[str, ...], NoDecode] = ("*",)

    # Streaming Configuration
    symbols: Annotated[tuple[str, ...], NoDecode] = DEFAULT_SYMBOLS
    heartbeat_interval: float = Field(default=2.0, gt=0)
    latest_subscribes: bool = False
    refresh_interval: float = Field(default=0.0, ge=0)
    refresh_broadcast: bool = False

    @field_validator("metaapi_token", "metaapi_account_id", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("tick_source", mode="before")
    @classmethod
    def _lower_source(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return (value.strip().upper() or "INFO") if isinstance(value, str) else value

    @field_validator("symbols", "cors_origins", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        """Comma-separated env values; blanks are dropped."""
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return tuple(part.strip() for part in value if isinstance(part, str) and part.strip())
        return value

    @field_validator("symbols", mode="after")
    @classmethod
    def _default_symbols(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return value or DEFAULT_SYMBOLS

    @field_validator("cors_origins", mode="after")
    @classmethod
    def _default_origins(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return value or ("*",)

    @model_validator(mode="after")
    def _require_credentials(self) -> Settings:
        if self.tick_source == "metaapi" and (not self.metaapi_token or not self.metaapi_account_id):
            raise ValueError("Missing METAAPI_TOKEN or METAAPI_ACCOUNT_ID")
        return self
