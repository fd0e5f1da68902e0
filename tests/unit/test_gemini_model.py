from __future__ import annotations

import io
import wave
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from content_studio.providers.backoff import is_rate_limited, retry_with_backoff
from content_studio.providers.base import AIModel
from content_studio.providers.errors import ProviderError
from content_studio.providers.gemini import GeminiModel, build_gemini_model, pcm_to_wav


def _model(generate_content: AsyncMock) -> GeminiModel:
  client = MagicMock()
  client.aio.models.generate_content = generate_content
  with patch("content_studio.providers.gemini.genai.Client", return_value=client):
    return GeminiModel("gemini-test", api_key="key", speech_model="gemini-tts-test")


def _response(text: str | None = None, parts: list | None = None) -> SimpleNamespace:
  return SimpleNamespace(text=text, parts=parts, usage_metadata=None)


def test_pcm_to_wav_wraps_samples() -> None:
  wav_bytes = pcm_to_wav(b"\x00\x01" * 100)

  with wave.open(io.BytesIO(wav_bytes), "rb") as wav:
    assert wav.getnchannels() == 1
    assert wav.getframerate() == 24000
    assert wav.getnframes() == 100


def test_strip_json_fences() -> None:
  assert AIModel.strip_json_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
  assert AIModel.strip_json_fences('{"a": 1}') == '{"a": 1}'


def test_build_gemini_model_requires_key(settings_factory) -> None:
  assert build_gemini_model(settings_factory(gemini_api_key=None)) is None


@pytest.mark.anyio
async def test_generate_structured_parses_fenced_json() -> None:
  generate_content = AsyncMock(return_value=_response('```json\n{"nodes": []}\n```'))

  response = await _model(generate_content).generate_structured("prompt", {"type": "object"})

  assert response.content == {"nodes": []}
  assert generate_content.await_args.kwargs["config"]["response_mime_type"] == "application/json"


@pytest.mark.anyio
async def test_generate_wraps_sdk_errors() -> None:
  model = _model(AsyncMock(side_effect=RuntimeError("permission denied")))

  with pytest.raises(ProviderError, match="permission denied"):
    await model.generate("prompt")


@pytest.mark.anyio
async def test_generate_speech_converts_pcm_to_wav() -> None:
  part = SimpleNamespace(inline_data=SimpleNamespace(data=b"\x00\x00" * 10, mime_type="audio/L16;codec=pcm;rate=24000"))
  generate_content = AsyncMock(return_value=_response(parts=[part]))

  audio = await _model(generate_content).generate_speech("Narration", voice="Aoede")

  assert audio.startswith(b"RIFF")
  assert generate_content.await_args.kwargs["model"] == "gemini-tts-test"


def test_is_rate_limited() -> None:
  assert is_rate_limited(RuntimeError("429 RESOURCE_EXHAUSTED"))
  assert not is_rate_limited(RuntimeError("400 INVALID_ARGUMENT"))


@pytest.mark.anyio
async def test_retry_with_backoff_retries_only_rate_limits() -> None:
  func = AsyncMock(side_effect=[RuntimeError("429 Too Many Requests"), "ok"])

  with patch("content_studio.providers.backoff.asyncio.sleep", new_callable=AsyncMock) as sleep:
    assert await retry_with_backoff(func, delays=(0.0,)) == "ok"

  assert func.await_count == 2
  sleep.assert_awaited_once()

  failing = AsyncMock(side_effect=ValueError("bad input"))
  with pytest.raises(ValueError):
    await retry_with_backoff(failing, delays=(0.0, 0.0))
  assert failing.await_count == 1
