"""Runnable code example for the lesson."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from content_studio.generation.contracts import ArtifactPayload, ArtifactResult, FormatKey, TaskContext
from content_studio.generation.language import LanguageGate, LanguageProfile
from content_studio.generation.prompts import code_prompt
from content_studio.generation.tasks.base import FormatTask
from content_studio.providers.base import AIModel
from content_studio.providers.errors import PROVIDER_ERROR, ProviderError

DEFAULT_PROGRAMMING_LANGUAGE = "javascript"
PROGRAMMING_LANGUAGES: dict[str, str] = {
  "javascript": "javascript",
  "js": "javascript",
  "node": "javascript",
  "nodejs": "javascript",
  "typescript": "typescript",
  "ts": "typescript",
  "python": "python",
  "java": "java",
  "c#": "csharp",
  "csharp": "csharp",
  "c++": "cpp",
  "cpp": "cpp",
  "go": "go",
  "golang": "go",
  "rust": "rust",
  "ruby": "ruby",
  "php": "php",
  "kotlin": "kotlin",
  "swift": "swift",
  "sql": "sql",
  "html": "html",
  "css": "css",
  "bash": "bash",
}

CODE_SCHEMA: dict[str, Any] = {
  "type": "object",
  "properties": {"language": {"type": "string"}, "code": {"type": "string"}, "explanation": {"type": "string"}},
  "required": ["code", "explanation"],
}


def detect_programming_language(skills: Sequence[str]) -> str:
  """Return the first programming language named by a skill, matching whole words."""
  for skill in skills:
    normalized = skill.strip().lower()
    if normalized in PROGRAMMING_LANGUAGES:
      return PROGRAMMING_LANGUAGES[normalized]
    for token in normalized.replace("/", " ").replace(",", " ").split():
      if token in PROGRAMMING_LANGUAGES:
        return PROGRAMMING_LANGUAGES[token]
  return DEFAULT_PROGRAMMING_LANGUAGE


class CodeTask(FormatTask):
  format_key = FormatKey.CODE

  def __init__(self, model: AIModel | None, *, language_gate: LanguageGate | None = None) -> None:
    super().__init__(language_gate=language_gate)
    self._model = model

  @property
  def configured(self) -> bool:
    return self._model is not None

  async def _generate(self, ctx: TaskContext, language: LanguageProfile) -> ArtifactResult:
    assert self._model is not None
    programming_language = detect_programming_language(ctx.skills)
    response = await self._model.generate_structured(code_prompt(ctx, language.normalized_code or "", programming_language), CODE_SCHEMA)
    code = str(response.content.get("code") or "").strip()
    if not code:
      raise ProviderError("code response contained no code", code=PROVIDER_ERROR, detail=response.content)
    content = {"language": programming_language, "code": code, "explanation": str(response.content.get("explanation") or "").strip()}
    return ArtifactResult.success(self.format_key, ArtifactPayload(content=content, metadata={"model": self._model.name, "language": language.normalized_code}))
