"""Gemini model client using the google-genai SDK."""

from __future__ import annotations

import io
import json
import logging
import wave
from typing import Any, cast

from google import genai
from google.genai import types

from content_studio.config import Settings
from content_studio.providers.backoff import retry_with_backoff
from content_studio.providers.base import AIModel, SimpleModelResponse, StructuredModelResponse
from content_studio.providers.errors import PROVIDER_ERROR, ProviderError

logger = logging.getLogger(__name__)

SPEECH_SAMPLE_RATE = 24000
SPEECH_CONTENT_TYPE = "audio/wav"


def _usage(response: Any) -> dict[str, int] | None:
  if not response.usage_metadata:
    return None
  return {"prompt_tokens": response.usage_metadata.prompt_token_count, "completion_tokens": response.usage_metadata.candidates_token_count, "total_tokens": response.usage_metadata.total_token_count}


def pcm_to_wav(pcm: bytes, *, sample_rate: int = SPEECH_SAMPLE_RATE) -> bytes:
  """Wrap 16-bit mono PCM in a WAV container."""
  buffer = io.BytesIO()
  with wave.open(buffer, "wb") as wav:
    wav.setnchannels(1)
    wav.setsampwidth(2)
    wav.setframerate(sample_rate)
    wav.writeframes(pcm)
  return buffer.getvalue()


class GeminiModel(AIModel):
  """Gemini text, structured JSON, and speech client."""

  def __init__(self, name: str, *, api_key: str, speech_model: str | None = None) -> None:
    if not api_key:
      raise ValueError("GEMINI_API_KEY is required")
    self.name: str = name
    self._speech_model = speech_model or name
    self._client = genai.Client(api_key=api_key)

  async def generate(self, prompt: str) -> SimpleModelResponse:
    """Generate a text response from Gemini."""
    try:
      # Use the async client to avoid blocking the asyncio event loop.
      response = await retry_with_backoff(self._client.aio.models.generate_content, model=self.name, contents=prompt)
    except Exception as e:
      raise ProviderError(f"Gemini generation failed: {e}", code=PROVIDER_ERROR) from e

    logger.debug("Gemini response chars=%s", len(response.text or ""))
    if not response.text:
      raise ProviderError("Gemini returned an empty response", code=PROVIDER_ERROR)
    return SimpleModelResponse(content=response.text, usage=_usage(response))

  async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> StructuredModelResponse:
    """Generate structured JSON output using Gemini's JSON mode."""
    try:
      response = await retry_with_backoff(self._client.aio.models.generate_content, model=self.name, contents=prompt, config={"response_mime_type": "application/json", "response_schema": schema})
    except Exception as e:
      raise ProviderError(f"Gemini structured generation failed: {e}", code=PROVIDER_ERROR) from e

    try:
      parsed = json.loads(self.strip_json_fences(response.text or ""))
    except json.JSONDecodeError as e:
      raise ProviderError(f"Gemini returned invalid JSON: {e}", code=PROVIDER_ERROR) from e
    if not isinstance(parsed, dict):
      raise ProviderError("Gemini returned JSON that is not an object", code=PROVIDER_ERROR)
    return StructuredModelResponse(content=cast(dict[str, Any], parsed), usage=_usage(response))

  async def generate_speech(self, text: str, voice: str | None = None) -> bytes:
    """Generate WAV narration audio from text."""
    speech_config = None
    if voice:
      speech_config = types.SpeechConfig(voice_config=types.VoiceConfig(prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice)))
    config = types.GenerateContentConfig(response_modalities=["AUDIO"], speech_config=speech_config)

    try:
      response = await retry_with_backoff(self._client.aio.models.generate_content, model=self._speech_model, contents=text, config=config)
    except Exception as e:
      logger.error("Gemini speech generation failed: %s", e)
      raise ProviderError(f"Gemini speech generation failed: {e}", code=PROVIDER_ERROR) from e

    # Extract audio bytes
    for part in response.parts or []:
      if part.inline_data and part.inline_data.data:
        mime_type = (part.inline_data.mime_type or "").lower()
        if "l16" in mime_type or "pcm" in mime_type:
          return pcm_to_wav(part.inline_data.data)
        return part.inline_data.data

    raise ProviderError("No audio data received from Gemini.", code=PROVIDER_ERROR)


def build_gemini_model(settings: Settings) -> GeminiModel | None:
  """Create the Gemini client, or ``None`` when no API key is configured."""
  if not settings.gemini_api_key:
    return None
  return GeminiModel(settings.text_model, api_key=settings.gemini_api_key, speech_model=settings.speech_model)
