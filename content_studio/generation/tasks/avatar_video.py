"""Narrated avatar video rendered asynchronously by the video provider."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from content_studio.config import DEFAULT_TEMPLATE_VARIABLES
from content_studio.generation.contracts import NO_AVAILABLE_RESOURCE, ArtifactResult, FormatKey, TaskContext
from content_studio.generation.language import LanguageGate, LanguageProfile
from content_studio.generation.tasks.base import JobBackedFormatTask
from content_studio.generation.transcript import clip_script
from content_studio.providers.heygen import HeyGenClient
from content_studio.providers.resources import ResourceCatalogCache
from content_studio.providers.voices import VoiceResolver
from content_studio.storage.persistor import MediaClass, ResultPersistor

logger = logging.getLogger(__name__)

MAX_SCRIPT_CHARS = 1500


class AvatarVideoTask(JobBackedFormatTask):
  format_key = FormatKey.AVATAR_VIDEO
  media_class = MediaClass.VIDEO

  def __init__(
    self,
    client: HeyGenClient | None,
    *,
    catalog: ResourceCatalogCache,
    persistor: ResultPersistor,
    voices: VoiceResolver,
    avatar_id: str,
    template_id: str | None = None,
    template_variables: Mapping[str, str] | None = None,
    language_gate: LanguageGate | None = None,
  ) -> None:
    super().__init__(persistor=persistor, language_gate=language_gate)
    self._client = client
    self._catalog = catalog
    self._voices = voices
    self._avatar_id = avatar_id
    self._template_id = template_id
    self._template_variables = dict(template_variables or DEFAULT_TEMPLATE_VARIABLES)

  @property
  def configured(self) -> bool:
    return self._client is not None

  async def _select_avatar(self) -> tuple[str | None, bool]:
    """Return the avatar to render with and whether it is a fallback."""
    if await self._catalog.is_valid(self._avatar_id):
      return self._avatar_id, False
    candidate = await self._catalog.fallback(exclude_id=self._avatar_id)
    if candidate is None:
      return None, False
    logger.warning("Configured avatar %s is not in the catalog; using fallback %s", self._avatar_id, candidate.id)
    return candidate.id, True

  def _template_values(self, ctx: TaskContext, *, script: str, avatar_id: str, voice_id: str, language_code: str) -> dict[str, Any]:
    """Fill the configured template variables, then add one ``image_N`` per slide image."""
    sources = {"title": ctx.title, "script": script, "avatar_id": avatar_id, "voice_id": voice_id, "language": language_code}
    values: dict[str, Any] = {name: sources[source] for name, source in self._template_variables.items()}
    for index, url in enumerate(ctx.slide_image_urls, start=1):
      values[f"image_{index}"] = {"url": url}
    return values

  async def _generate(self, ctx: TaskContext, language: LanguageProfile) -> ArtifactResult:
    assert self._client is not None
    avatar_id, is_fallback = await self._select_avatar()
    if avatar_id is None:
      return ArtifactResult.skipped(self.format_key, NO_AVAILABLE_RESOURCE, f"avatar {self._avatar_id} is unavailable and no eligible fallback avatar exists")

    code = language.normalized_code or ""
    voice_id = self._voices.video_voice(code)
    script = clip_script(ctx.prompt_text, max_chars=MAX_SCRIPT_CHARS)

    if self._template_id:
      handle = await self._client.submit_template_video(self._template_id, title=ctx.title, variables=self._template_values(ctx, script=script, avatar_id=avatar_id, voice_id=voice_id, language_code=code), voice_id=voice_id)
    else:
      handle = await self._client.submit_video(title=ctx.title, avatar_id=avatar_id, script=script, voice_id=voice_id)

    outcome = await self._client.wait_for_video(handle)
    metadata = {"provider": "heygen", "avatar_id": avatar_id, "avatar_fallback": is_fallback, "voice_id": voice_id, "language": code}
    if self._template_id:
      metadata["template_id"] = self._template_id
    return await self._result_from_outcome(outcome, object_name=f"avatar_videos/avatar_{outcome.job_id}.mp4", metadata=metadata)
