"""Runtime configuration, read from environment variables."""

import logging
import os
from dataclasses import dataclass

from src.core.exceptions import ConfigurationError

ENV_PREFIX = "OTHELLO_"

# names of the built-in move selectors standing in for the AI (see src/othello/ai.py)
AI_STRATEGIES = ("first", "greedy", "random")

_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        value = int(raw)
    except ValueError as err:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be a whole number, got {raw!r}."
        ) from err
    if value < 1:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be at least 1, got {value}.")
    return value


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = _env(name, default).strip().lower()
    if value not in choices:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be one of {', '.join(choices)}, got {value!r}."
        )
    return value


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./collective_othello.db"
    db_echo: bool = False
    log_level: str = "INFO"
    autoplay_ai: bool = True
    ai_strategy: str = "greedy"
    default_page_size: int = 20
    max_page_size: int = 100
    max_description_length: int = 200


def get_settings() -> Settings:
    """Build the settings from the current environment (defaults for anything not set). Raises ConfigurationError."""
    defaults = Settings()
    return Settings(
        database_url=_env("DATABASE_URL", defaults.database_url),
        db_echo=_env_bool("DB_ECHO", defaults.db_echo),
        log_level=_env("LOG_LEVEL", defaults.log_level).upper(),
        autoplay_ai=_env_bool("AUTOPLAY_AI", defaults.autoplay_ai),
        ai_strategy=_env_choice("AI_STRATEGY", defaults.ai_strategy, AI_STRATEGIES),
        default_page_size=_env_int("DEFAULT_PAGE_SIZE", defaults.default_page_size),
        max_page_size=_env_int("MAX_PAGE_SIZE", defaults.max_page_size),
        max_description_length=_env_int(
            "MAX_DESCRIPTION_LENGTH", defaults.max_description_length
        ),
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Install a basic handler at the configured level. Safe to call more than once."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
