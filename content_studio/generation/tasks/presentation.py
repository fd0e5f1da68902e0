"""Slide deck exported as PPTX."""

from __future__ import annotations

import uuid

from content_studio.generation.contracts import ArtifactResult, FormatKey, TaskContext
from content_studio.generation.language import LanguageGate, LanguageProfile
from content_studio.generation.prompts import presentation_input
from content_studio.generation.tasks.base import JobBackedFormatTask
from content_studio.providers.gamma import GammaClient
from content_studio.storage.persistor import MediaClass, ResultPersistor


class PresentationTask(JobBackedFormatTask):
  format_key = FormatKey.PRESENTATION
  media_class = MediaClass.PRESENTATION

  def __init__(self, client: GammaClient | None, *, persistor: ResultPersistor, language_gate: LanguageGate | None = None) -> None:
    super().__init__(persistor=persistor, language_gate=language_gate)
    self._client = client

  @property
  def configured(self) -> bool:
    return self._client is not None

  async def _generate(self, ctx: TaskContext, language: LanguageProfile) -> ArtifactResult:
    assert self._client is not None
    code = language.normalized_code or ""
    handle = await self._client.create_presentation(presentation_input(ctx, code), language=code)
    outcome = await self._client.wait_for_presentation(handle)
    object_name = f"presentations/topic_{ctx.topic_id}_{code}_{uuid.uuid4().hex[:12]}.pptx"
    return await self._result_from_outcome(outcome, object_name=object_name, metadata={"provider": "gamma", "language": code})
