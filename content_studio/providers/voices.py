"""Per-language narrator voice selection."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

# Prebuilt Gemini voices; the TTS model detects the spoken language from the text.
DEFAULT_SPEECH_VOICE = "Kore"
SPEECH_VOICES: dict[str, str] = {"en": "Kore", "he": "Aoede", "ar": "Charon", "es": "Puck", "fr": "Leda", "de": "Orus", "ja": "Zephyr", "zh": "Zephyr"}


@dataclass(frozen=True)
class VoiceResolver:
  """Resolve the video narrator voice for a language code."""

  default_voice_id: str
  overrides: Mapping[str, str] = field(default_factory=dict, hash=False)

  def video_voice(self, language_code: str) -> str:
    """Return the configured voice for the language, falling back to the default voice."""
    return self.overrides.get(language_code.lower()) or self.default_voice_id

  def speech_voice(self, language_code: str) -> str:
    """Return the prebuilt speech voice for the language."""
    return SPEECH_VOICES.get(language_code.lower(), DEFAULT_SPEECH_VOICE)
