"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Union

from .errors import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "agentflow.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_CHAIN = ("processor", "enhancer", "formatter")
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
PROVIDERS = ("anthropic", "echo")


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""

    provider: str = "anthropic"
    model: str = DEFAULT_MODEL
    chain: tuple[str, ...] = DEFAULT_CHAIN
    default_route: str | None = None
    max_hops: int = 16
    run_timeout: float | None = None
    workers: int = 4
    database_url: str | None = None

    @property
    def start_route(self) -> str | None:
        """Agent receiving events that carry no route metadata."""
        if self.default_route:
            return self.default_route
        return self.chain[0] if self.chain else None

    def with_provider(self, provider: str) -> "Settings":
        provider = provider.strip().lower()
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unknown provider: {provider}", provider=provider
            )
        return replace(self, provider=provider)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        provider = os.getenv("AGENTFLOW_PROVIDER", "anthropic").strip().lower()
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unknown provider: {provider}", provider=provider
            )

        raw_chain = os.getenv("AGENTFLOW_CHAIN", ",".join(DEFAULT_CHAIN))
        chain = tuple(name.strip() for name in raw_chain.split(",") if name.strip())
        if not chain:
            raise ConfigurationError("AGENTFLOW_CHAIN is empty")

        run_timeout = _parse_number("AGENTFLOW_RUN_TIMEOUT", float, None)

        return cls(
            provider=provider,
            model=os.getenv("ANTHROPIC_MODEL", DEFAULT_MODEL),
            chain=chain,
            default_route=os.getenv("AGENTFLOW_DEFAULT_ROUTE") or None,
            max_hops=_parse_number("AGENTFLOW_MAX_HOPS", int, 16),
            run_timeout=run_timeout,
            workers=_parse_number("AGENTFLOW_WORKERS", int, 4),
            database_url=os.getenv("DATABASE_URL") or None,
        )


def _parse_number(name: str, kind: type, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = kind(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number", value=raw) from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive", value=raw)
    return value


def api_address() -> tuple[str, int]:
    """Bind host and port for the HTTP API (API_HOST, API_PORT)."""
    host = os.getenv("API_HOST") or "localhost"
    return host, _parse_number("API_PORT", int, 8000)
