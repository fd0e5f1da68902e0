"""Narrated audio summary."""

from __future__ import annotations

import uuid

from content_studio.generation.contracts import ArtifactPayload, ArtifactResult, FormatKey, TaskContext
from content_studio.generation.language import LanguageGate, LanguageProfile
from content_studio.generation.prompts import narration_prompt
from content_studio.generation.tasks.base import FormatTask
from content_studio.providers.base import AIModel
from content_studio.providers.errors import PROVIDER_ERROR, ProviderError
from content_studio.providers.gemini import SPEECH_CONTENT_TYPE
from content_studio.providers.voices import VoiceResolver
from content_studio.storage.persistor import ResultPersistor


class AudioTask(FormatTask):
  format_key = FormatKey.AUDIO

  def __init__(self, model: AIModel | None, *, persistor: ResultPersistor, voices: VoiceResolver, content_type: str = SPEECH_CONTENT_TYPE, language_gate: LanguageGate | None = None) -> None:
    super().__init__(language_gate=language_gate)
    self._model = model
    self._persistor = persistor
    self._voices = voices
    self._content_type = content_type

  @property
  def configured(self) -> bool:
    return self._model is not None

  async def _generate(self, ctx: TaskContext, language: LanguageProfile) -> ArtifactResult:
    assert self._model is not None
    code = language.normalized_code or ""
    script = (await self._model.generate(narration_prompt(ctx, code))).content.strip()
    if not script:
      raise ProviderError("narration script is empty", code=PROVIDER_ERROR)

    voice = self._voices.speech_voice(code)
    audio = await self._model.generate_speech(script, voice=voice)
    if not audio:
      raise ProviderError("speech synthesis returned no audio", code=PROVIDER_ERROR)

    extension = "wav" if self._content_type == "audio/wav" else "mp3"
    object_name = f"audio/topic_{ctx.topic_id}_{code}_{uuid.uuid4().hex[:12]}.{extension}"
    persisted = await self._persistor.persist_bytes(audio, object_name=object_name, content_type=self._content_type)
    metadata = {"voice": voice, "language": code, "content_type": self._content_type, "size": persisted.size}
    if persisted.error:
      metadata["persistence_error"] = persisted.error
    payload = ArtifactPayload(url=persisted.stored_url, integrity_hash=persisted.integrity_hash, signature=persisted.signature, fallback=persisted.fallback, content=script, metadata=metadata)
    return ArtifactResult.success(self.format_key, payload)
