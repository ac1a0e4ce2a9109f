import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

from thumb_service.thumbnails.errors import ConfigError

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    db_path: str
    port: int
    host: str = "0.0.0.0"
    reload: bool = False
    workers: int = 0
    fetch_timeout_sec: float = 30.0
    step_timeout_sec: float = 120.0
    hook_timeout_sec: float = 10.0
    max_pdf_mb: int = 100
    keep_pdf: bool = False
    hook_on_existing: bool = False
    thumbnail_zoom: float = 0.35
    jpeg_quality: int = 70
    log_level: str = "INFO"

    @property
    def max_pdf_bytes(self) -> int:
        return self.max_pdf_mb * 1024 * 1024


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"The {name} environment variable must be a number, got {raw!r}") from None


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Read settings from the environment (and a local .env file, if present).

    DB_PATH and PORT are required; everything else has a default.
    """
    if env is None:
        load_dotenv()
        env = os.environ
    db_path = env.get("DB_PATH", "").strip()
    if not db_path:
        raise ConfigError("The DB_PATH environment variable must be defined")
    if not env.get("PORT", "").strip():
        raise ConfigError("The PORT environment variable must be defined")
    port = _number(env, "PORT", 0, int)
    workers = _number(env, "WORKERS", 0, int)
    if workers < 0:
        raise ConfigError("The WORKERS environment variable must not be negative")
    return Settings(
        db_path=db_path,
        port=port,
        host=env.get("HOST", "0.0.0.0"),
        reload=_flag(env, "RELOAD", False),
        workers=workers,
        fetch_timeout_sec=_number(env, "FETCH_TIMEOUT_SEC", 30.0, float),
        step_timeout_sec=_number(env, "STEP_TIMEOUT_SEC", 120.0, float),
        hook_timeout_sec=_number(env, "HOOK_TIMEOUT_SEC", 10.0, float),
        max_pdf_mb=_number(env, "MAX_PDF_MB", 100, int),
        keep_pdf=_flag(env, "KEEP_PDF", False),
        hook_on_existing=_flag(env, "HOOK_ON_EXISTING", False),
        thumbnail_zoom=_number(env, "THUMBNAIL_ZOOM", 0.35, float),
        jpeg_quality=_number(env, "JPEG_QUALITY", 70, int),
        log_level=env.get("LOG_LEVEL", "INFO"),
    )
