import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

DEFAULT_OCR_URL = "https://api.ocr.space/parse/image"
# Public demo key published by OCR.space; rate limited.
DEFAULT_OCR_API_KEY = "helloworld"
DEFAULT_MAX_RECORDS = 100
CONFIDENCE_POLICIES = ("coverage", "overlay")


@dataclass(frozen=True)
class Settings:
    ocr_api_key: str = DEFAULT_OCR_API_KEY
    ocr_url: str = DEFAULT_OCR_URL
    ocr_engine: str = "2"
    ocr_language: str = "eng"
    ocr_timeout: int = 60
    max_records: int = DEFAULT_MAX_RECORDS
    confidence_policy: str = "coverage"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    This makes running tools from subdirectories (e.g., `src/`) still find
    repository-level config files like `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Return key/value pairs from the nearest .env; does not mutate os.environ."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    values = {k: v.strip() for k, v in dotenv_values(path).items() if v is not None}
    log.debug(f"Loaded {len(values)} key(s) from .env at {path}")
    return values


def _lookup(env: Dict[str, str], key: str) -> Optional[str]:
    v = os.environ.get(key)
    if v is not None and v.strip():
        return v.strip()
    v = env.get(key)
    return v.strip() if v else None


def _int_setting(env: Dict[str, str], key: str, default: int, *, minimum: int = 1) -> int:
    raw = _lookup(env, key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning(f"{key}={raw!r} is not an integer; using {default}")
        return default
    if value < minimum:
        log.warning(f"{key}={value} is below {minimum}; using {default}")
        return default
    return value


def load_settings(dotenv_dir: Optional[str] = None) -> Settings:
    """Build Settings from the environment first, then the nearest .env file."""
    env = _read_dotenv(dotenv_dir or os.getcwd())

    api_key = _lookup(env, "OCR_SPACE_API_KEY")
    if api_key:
        log.info("Using OCR_SPACE_API_KEY from env/.env")
    else:
        log.info("OCR_SPACE_API_KEY not set; falling back to the public demo key")
        api_key = DEFAULT_OCR_API_KEY

    policy = (_lookup(env, "SHELFSCAN_CONFIDENCE") or "coverage").lower()
    if policy not in CONFIDENCE_POLICIES:
        log.warning(
            f"SHELFSCAN_CONFIDENCE={policy!r} is invalid; expected one of {CONFIDENCE_POLICIES}. Using 'coverage'."
        )
        policy = "coverage"

    return Settings(
        ocr_api_key=api_key,
        ocr_url=_lookup(env, "OCR_SPACE_URL") or DEFAULT_OCR_URL,
        ocr_engine=_lookup(env, "OCR_ENGINE") or "2",
        ocr_language=_lookup(env, "OCR_LANGUAGE") or "eng",
        ocr_timeout=_int_setting(env, "OCR_TIMEOUT", 60),
        max_records=_int_setting(env, "SHELFSCAN_MAX_RECORDS", DEFAULT_MAX_RECORDS),
        confidence_policy=policy,
    )
