"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from content_studio.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_AVATAR_ID = "Kristin_public_3_20240108"
DEFAULT_HEYGEN_VOICE_ID = "1bd001e7e421d891986aad5158bc8"
# Template variable name -> request field it is filled from. Slide images go to image_1..image_N.
TEMPLATE_VARIABLE_SOURCES = frozenset({"title", "script", "avatar_id", "voice_id", "language"})
DEFAULT_TEMPLATE_VARIABLES = {"title": "title", "script": "script", "avatar_id": "avatar_id"}
_DEFAULT_LOG_DIR = Path(__file__).resolve().parents[1] / "logs"


@dataclass(frozen=True)
class Settings:
  """Typed settings for the content generation pipeline."""

  environment: str
  debug: bool
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  http_timeout_seconds: float
  gemini_api_key: str | None
  text_model: str
  speech_model: str
  heygen_api_key: str | None
  heygen_base_url: str
  avatar_id: str
  heygen_template_id: str | None
  heygen_default_voice_id: str
  heygen_template_variables: dict[str, str] = field(hash=False)
  heygen_voices: dict[str, str] = field(hash=False)
  video_poll_max_attempts: int
  video_poll_interval_seconds: float
  submit_max_retries: int
  submit_retry_delay_seconds: float
  gamma_api_key: str | None
  gamma_base_url: str
  gamma_theme_id: str | None
  presentation_poll_max_attempts: int
  presentation_poll_interval_seconds: float
  artifact_bucket: str
  artifact_object_prefix: str
  gcs_storage_host: str | None
  gcp_project_id: str | None
  signing_private_key: str | None


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  stripped = raw.strip()
  return stripped or None


def _parse_json_dict(name: str, raw: str | None, *, lower_keys: bool = True) -> dict[str, str]:
  if not raw or not raw.strip():
    return {}
  try:
    parsed = json.loads(raw)
  except json.JSONDecodeError as exc:
    raise ValueError(f"{name} must be a JSON object: {exc}") from exc
  if not isinstance(parsed, dict):
    raise ValueError(f"{name} must be a JSON object.")
  return {(str(key).strip().lower() if lower_keys else str(key).strip()): str(value) for key, value in parsed.items() if value}


def _parse_template_variables(raw: str | None) -> dict[str, str]:
  name = "CONTENT_STUDIO_HEYGEN_TEMPLATE_VARIABLES"
  mapping = {key: value.strip().lower() for key, value in _parse_json_dict(name, raw, lower_keys=False).items()}
  if not mapping:
    return dict(DEFAULT_TEMPLATE_VARIABLES)
  unknown = sorted(set(mapping.values()) - TEMPLATE_VARIABLE_SOURCES)
  if unknown:
    raise ValueError(f"{name} has unknown sources: {', '.join(unknown)}. Use one of {', '.join(sorted(TEMPLATE_VARIABLE_SOURCES))}.")
  return mapping


def _parse_int(name: str, default: str, *, minimum: int) -> int:
  raw = os.getenv(name, default)
  try:
    value = int(raw)
  except ValueError as exc:
    raise ValueError(f"{name} must be an integer.") from exc
  if value < minimum:
    raise ValueError(f"{name} must be at least {minimum}.")
  return value


def _parse_float(name: str, default: str, *, minimum: float) -> float:
  raw = os.getenv(name, default)
  try:
    value = float(raw)
  except ValueError as exc:
    raise ValueError(f"{name} must be a number.") from exc
  if value < minimum:
    raise ValueError(f"{name} must be at least {minimum}.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("CONTENT_STUDIO_ENV", "development").lower()
  # Toggle verbose logging in non-production environments.
  debug = _parse_bool(os.getenv("CONTENT_STUDIO_DEBUG"))
  log_dir = os.getenv("CONTENT_STUDIO_LOG_DIR", str(_DEFAULT_LOG_DIR)).strip()
  log_max_bytes = _parse_int("CONTENT_STUDIO_LOG_MAX_BYTES", "5242880", minimum=1)  # 5MB default
  log_backup_count = _parse_int("CONTENT_STUDIO_LOG_BACKUP_COUNT", "10", minimum=0)
  http_timeout_seconds = _parse_float("CONTENT_STUDIO_HTTP_TIMEOUT_SECONDS", "60", minimum=1.0)

  # Video jobs are the slowest format; the poll budget bounds the wait at attempts x interval.
  video_poll_max_attempts = _parse_int("CONTENT_STUDIO_VIDEO_POLL_MAX_ATTEMPTS", "120", minimum=1)
  video_poll_interval_seconds = _parse_float("CONTENT_STUDIO_VIDEO_POLL_INTERVAL_SECONDS", "5", minimum=0.0)
  submit_max_retries = _parse_int("CONTENT_STUDIO_SUBMIT_MAX_RETRIES", "3", minimum=0)
  submit_retry_delay_seconds = _parse_float("CONTENT_STUDIO_SUBMIT_RETRY_DELAY_SECONDS", "2", minimum=0.0)
  presentation_poll_max_attempts = _parse_int("CONTENT_STUDIO_PRESENTATION_POLL_MAX_ATTEMPTS", "60", minimum=1)
  presentation_poll_interval_seconds = _parse_float("CONTENT_STUDIO_PRESENTATION_POLL_INTERVAL_SECONDS", "5", minimum=0.0)

  return Settings(
    environment=environment,
    debug=debug,
    log_dir=log_dir,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    http_timeout_seconds=http_timeout_seconds,
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    text_model=os.getenv("CONTENT_STUDIO_TEXT_MODEL", "gemini-2.5-flash"),
    speech_model=os.getenv("CONTENT_STUDIO_SPEECH_MODEL", "gemini-2.5-flash-preview-tts"),
    heygen_api_key=_optional_str(os.getenv("HEYGEN_API_KEY")),
    heygen_base_url=os.getenv("CONTENT_STUDIO_HEYGEN_BASE_URL", "https://api.heygen.com").rstrip("/"),
    avatar_id=_optional_str(os.getenv("CONTENT_STUDIO_AVATAR_ID")) or DEFAULT_AVATAR_ID,
    heygen_template_id=_optional_str(os.getenv("CONTENT_STUDIO_HEYGEN_TEMPLATE_ID")),
    heygen_template_variables=_parse_template_variables(os.getenv("CONTENT_STUDIO_HEYGEN_TEMPLATE_VARIABLES")),
    heygen_default_voice_id=_optional_str(os.getenv("CONTENT_STUDIO_HEYGEN_DEFAULT_VOICE_ID")) or DEFAULT_HEYGEN_VOICE_ID,
    heygen_voices=_parse_json_dict("CONTENT_STUDIO_HEYGEN_VOICES", os.getenv("CONTENT_STUDIO_HEYGEN_VOICES")),
    video_poll_max_attempts=video_poll_max_attempts,
    video_poll_interval_seconds=video_poll_interval_seconds,
    submit_max_retries=submit_max_retries,
    submit_retry_delay_seconds=submit_retry_delay_seconds,
    gamma_api_key=_optional_str(os.getenv("GAMMA_API_KEY")),
    gamma_base_url=os.getenv("CONTENT_STUDIO_GAMMA_BASE_URL", "https://public-api.gamma.app").rstrip("/"),
    gamma_theme_id=_optional_str(os.getenv("CONTENT_STUDIO_GAMMA_THEME_ID")),
    presentation_poll_max_attempts=presentation_poll_max_attempts,
    presentation_poll_interval_seconds=presentation_poll_interval_seconds,
    artifact_bucket=os.getenv("CONTENT_STUDIO_ARTIFACT_BUCKET", "content-studio-media").strip(),
    artifact_object_prefix=os.getenv("CONTENT_STUDIO_ARTIFACT_PREFIX", "generated").strip().strip("/"),
    gcs_storage_host=_optional_str(os.getenv("GCS_STORAGE_HOST")),
    gcp_project_id=_optional_str(os.getenv("GCP_PROJECT_ID")),
    signing_private_key=_optional_str(os.getenv("CONTENT_STUDIO_PRIVATE_KEY")),
  )
