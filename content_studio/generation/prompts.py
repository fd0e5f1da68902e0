"""Prompt builders for the model-backed formats."""

from __future__ import annotations

from content_studio.generation.contracts import TaskContext
from content_studio.generation.language import language_name, preservation_instruction


def _header(ctx: TaskContext, language_code: str) -> str:
  lines = [f"Lesson title: {ctx.title}", f"Language: {language_name(language_code)} ({language_code})"]
  if ctx.skills:
    lines.append(f"Target skills: {', '.join(ctx.skills)}")
  if ctx.topic and ctx.topic.description:
    lines.append(f"Topic description: {ctx.topic.description}")
  lines.append(preservation_instruction(language_code))
  return "\n".join(lines)


def _source(ctx: TaskContext) -> str:
  return f"Source material:\n\"\"\"\n{ctx.prompt_text}\n\"\"\""


def text_prompt(ctx: TaskContext, language_code: str) -> str:
  return "\n\n".join([_header(ctx, language_code), "Write a clear, well-structured lesson text for learners based on the source material. Use short sections with headings.", _source(ctx)])


def narration_prompt(ctx: TaskContext, language_code: str) -> str:
  return "\n\n".join([_header(ctx, language_code), "Write a spoken narration script of about two minutes summarizing the lesson. Plain sentences only, no headings or markup.", _source(ctx)])


def mind_map_prompt(ctx: TaskContext, language_code: str) -> str:
  return "\n\n".join([_header(ctx, language_code), "Build a concept map of the lesson: one central concept, its main ideas, and supporting details. Return JSON with `nodes` and `edges`.", _source(ctx)])


def code_prompt(ctx: TaskContext, language_code: str, programming_language: str) -> str:
  instruction = f"Write one runnable {programming_language} example that demonstrates the lesson, followed by a short explanation. Comments and explanation follow the language rule above."
  return "\n\n".join([_header(ctx, language_code), instruction, _source(ctx)])


def presentation_input(ctx: TaskContext, language_code: str) -> str:
  """Input text for the slide provider, with the language rules placed before the content."""
  return "\n\n".join([preservation_instruction(language_code), f"Presentation title: {ctx.title}", ctx.prompt_text])
