from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

ENV_PREFIX = "CAREER_"


@dataclass(frozen=True)
class Settings:
    max_upload_bytes: int = 10 * 1024 * 1024
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    default_top_n: int = 10
    max_top_n: int = 200
    page_size: int = 20
    log_level: str = "INFO"


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring %s%s=%r (not an integer)", ENV_PREFIX, name, raw)
        return default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Defaults overridden by CAREER_* environment variables."""
    env = os.environ if env is None else env
    defaults = Settings()

    origins = env.get(ENV_PREFIX + "CORS_ORIGINS")
    cors = [o.strip() for o in origins.split(",") if o.strip()] if origins else defaults.cors_origins

    max_top_n = max(1, _env_int(env, "MAX_TOP_N", defaults.max_top_n))
    return Settings(
        max_upload_bytes=max(1, _env_int(env, "MAX_UPLOAD_BYTES", defaults.max_upload_bytes)),
        cors_origins=cors,
        default_top_n=max(1, min(max_top_n, _env_int(env, "DEFAULT_TOP_N", defaults.default_top_n))),
        max_top_n=max_top_n,
        page_size=max(1, _env_int(env, "PAGE_SIZE", defaults.page_size)),
        log_level=(env.get(ENV_PREFIX + "LOG_LEVEL") or defaults.log_level).strip().upper(),
    )
