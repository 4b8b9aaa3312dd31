"""
Configuration and environment loading for the chess explorer.

- Loads settings.yml (YAML) from repo root if present; falls back to environment variables (.env honoured).
- Exposes SETTINGS with keys used across the project (logging level, error previews, HTTP registry knobs).
"""
from dataclasses import dataclass
import logging
import os
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger(__name__)


def _repo_root() -> str:
    # this file: src/chess_explorer/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        log.warning("Could not read %s; using environment only", path, exc_info=True)
        return {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s: top level is not a mapping", path)
        return {}
    return data


_cfg = _load_yaml(os.path.join(_repo_root(), "settings.yml"))


def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    if name in _cfg:
        val = _cfg[name]
        return cast(val) if cast else val
    env = os.environ.get(name)
    if env is not None:
        return cast(env) if cast else env
    return default


@dataclass(frozen=True)
class Settings:
    log_level: str

    # Size of the movetext excerpt attached to INVALID_PGN parse errors
    pgn_preview_chars: int

    # HTTP registry
    session_ttl_s: float
    host: str
    port: int


SETTINGS = Settings(
    log_level=str(_get("EXPLORER_LOG_LEVEL", "INFO")).upper(),
    pgn_preview_chars=int(_get("EXPLORER_PGN_PREVIEW_CHARS", 200, cast=int)),
    session_ttl_s=float(_get("EXPLORER_SESSION_TTL_S", 3600.0, cast=float)),
    host=str(_get("EXPLORER_HOST", "0.0.0.0")),
    port=int(_get("EXPLORER_PORT", 8000, cast=int)),
)


def configure_logging(level: str | None = None) -> None:
    """basicConfig with the project's format; entry points call this once."""
    name = (level or SETTINGS.log_level).upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
