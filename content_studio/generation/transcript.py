"""Transcript clean-up applied once per request before fan-out."""

from __future__ import annotations

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_HORIZONTAL_RUNS = re.compile(r"[ \t]+")
_BLANK_RUNS = re.compile(r"\n{3,}")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s")


def normalize_transcript(text: str) -> str:
  """Normalize line endings and whitespace and drop control characters."""
  normalized = text.replace("\r\n", "\n").replace("\r", "\n")
  normalized = _CONTROL_CHARS.sub("", normalized)
  normalized = _HORIZONTAL_RUNS.sub(" ", normalized)
  normalized = "\n".join(line.strip() for line in normalized.split("\n"))
  normalized = _BLANK_RUNS.sub("\n\n", normalized)
  return normalized.strip()


def derive_title(text: str, *, max_chars: int = 60) -> str | None:
  """Return the first sentence of ``text`` clipped to ``max_chars``, or ``None`` for empty text."""
  first_line = text.strip().split("\n", 1)[0].strip()
  if not first_line:
    return None
  sentence = _SENTENCE_END.split(first_line, maxsplit=1)[0].strip()
  if len(sentence) <= max_chars:
    return sentence
  clipped = sentence[:max_chars].rsplit(" ", 1)[0].rstrip(",;:")
  return clipped or sentence[:max_chars]


def clip_script(text: str, *, max_chars: int) -> str:
  """Clip ``text`` to ``max_chars`` on a sentence boundary when one exists."""
  if len(text) <= max_chars:
    return text
  window = text[:max_chars]
  boundary = max(window.rfind(". "), window.rfind("! "), window.rfind("? "), window.rfind("\n"))
  if boundary > max_chars // 2:
    return window[: boundary + 1].strip()
  return window.rsplit(" ", 1)[0].strip()
