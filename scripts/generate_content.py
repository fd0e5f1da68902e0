from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from content_studio.config import get_settings  # noqa: E402
from content_studio.core.lifespan import studio_lifespan  # noqa: E402
from content_studio.core.logging import initialize_logging  # noqa: E402
from content_studio.generation.progress import LoggingProgressSink  # noqa: E402
from content_studio.storage.topics import InMemoryTopicMetadataSource, TopicMetadata  # noqa: E402


def _read_transcript(*, path: str) -> str:
  """Read the transcript from a file, or from stdin when the path is `-`."""
  if path == "-":
    return sys.stdin.read()
  return Path(path).read_text(encoding="utf-8")


def _topic_source(*, topic_id: str, name: str | None, language: str | None, skills: list[str]) -> InMemoryTopicMetadataSource:
  """Expose CLI-provided topic attributes through the topic metadata contract."""
  source = InMemoryTopicMetadataSource()
  if name or language or skills:
    source.add(TopicMetadata(topic_id=topic_id, name=name, language=language, skills=tuple(skills)))
  return source


async def _run(args: argparse.Namespace) -> int:
  settings = get_settings()
  initialize_logging(settings)

  transcript = _read_transcript(path=args.transcript)
  topics = _topic_source(topic_id=args.topic_id, name=args.topic_name, language=args.topic_language, skills=args.skill)
  async with studio_lifespan(settings, topics=topics) as orchestrator:
    response = await orchestrator.generate_all(transcript, topic_id=args.topic_id, language=args.language, skills=args.skill or None, slide_image_urls=args.slide_image, sink=LoggingProgressSink())

  print(json.dumps(response.as_dict(), ensure_ascii=False, indent=2, default=str))
  failed = [key.value for key, result in response.results.items() if result.status.value == "failed"]
  return 1 if failed and args.strict else 0


def main() -> None:
  """Generate every content format for one transcript and print the response JSON."""
  parser = argparse.ArgumentParser(description="Generate text, audio, slides, mind map, code, and avatar video for a transcript.")
  parser.add_argument("transcript", help="Transcript file path, or - to read stdin.")
  parser.add_argument("--topic-id", required=True, help="Topic identifier the content belongs to.")
  parser.add_argument("--language", default=None, help="Content language (code, locale tag, or name). Falls back to --topic-language.")
  parser.add_argument("--skill", action="append", default=[], help="Target skill; repeat for several.")
  parser.add_argument("--slide-image", action="append", default=[], help="Slide image URL for template videos; repeat in slide order.")
  parser.add_argument("--topic-name", default=None, help="Stored topic name used as the lesson title.")
  parser.add_argument("--topic-language", default=None, help="Stored topic language used when --language is omitted.")
  parser.add_argument("--strict", action="store_true", help="Exit non-zero when any format failed.")
  args = parser.parse_args()

  raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
  main()
