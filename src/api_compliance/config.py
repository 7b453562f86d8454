"""Runtime configuration for the compliance checks.

Settings are read from ``API_COMPLIANCE_*`` environment variables (or a
``.env`` file). The validation switch can also be flipped in code; a flip
only affects decorators applied afterwards.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from functools import lru_cache
from typing import Iterator, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ValidationMode(str, Enum):
    STRICT = "strict"
    OFF = "off"


class Settings(BaseSettings):
    validation_enabled: bool = True
    stop_words: list[str] = ["api"]
    path_param_order: Literal["declared", "template"] = "declared"

    model_config = SettingsConfigDict(
        env_prefix="API_COMPLIANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def is_validation_enabled() -> bool:
    return get_settings().validation_enabled


def set_validation_enabled(enabled: bool) -> None:
    settings = get_settings()
    if settings.validation_enabled != enabled:
        logger.info("API compliance checks %s", "enabled" if enabled else "disabled")
    settings.validation_enabled = enabled


def current_mode() -> ValidationMode:
    return ValidationMode.STRICT if is_validation_enabled() else ValidationMode.OFF


def resolve_mode(mode: ValidationMode | str | bool | None) -> ValidationMode:
    """Turn an explicit per-call mode into a ``ValidationMode``.

    ``None`` falls back to the process-wide switch as it is right now.
    """
    if mode is None:
        return current_mode()
    if isinstance(mode, bool):
        return ValidationMode.STRICT if mode else ValidationMode.OFF
    return ValidationMode(mode)


@contextmanager
def validation_mode(enabled: bool) -> Iterator[None]:
    """Temporarily set the process-wide switch, restoring it on exit."""
    previous = is_validation_enabled()
    set_validation_enabled(enabled)
    try:
        yield
    finally:
        set_validation_enabled(previous)
