"""Narrative lesson text."""

from __future__ import annotations

from content_studio.generation.contracts import ArtifactPayload, ArtifactResult, FormatKey, TaskContext
from content_studio.generation.language import LanguageGate, LanguageProfile
from content_studio.generation.prompts import text_prompt
from content_studio.generation.tasks.base import FormatTask
from content_studio.providers.base import AIModel


class TextTask(FormatTask):
  format_key = FormatKey.TEXT

  def __init__(self, model: AIModel | None, *, language_gate: LanguageGate | None = None) -> None:
    super().__init__(language_gate=language_gate)
    self._model = model

  @property
  def configured(self) -> bool:
    return self._model is not None

  async def _generate(self, ctx: TaskContext, language: LanguageProfile) -> ArtifactResult:
    assert self._model is not None
    response = await self._model.generate(text_prompt(ctx, language.normalized_code or ""))
    text = response.content.strip()
    metadata = {"model": self._model.name, "language": language.normalized_code, "word_count": len(text.split()), "usage": response.usage}
    return ArtifactResult.success(self.format_key, ArtifactPayload(content=text, metadata=metadata))
