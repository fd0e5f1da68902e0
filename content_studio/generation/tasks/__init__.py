"""Per-format generation tasks."""

from content_studio.generation.tasks.audio import AudioTask
from content_studio.generation.tasks.avatar_video import AvatarVideoTask
from content_studio.generation.tasks.base import FormatTask, JobBackedFormatTask
from content_studio.generation.tasks.code import CodeTask
from content_studio.generation.tasks.mind_map import MindMapTask
from content_studio.generation.tasks.presentation import PresentationTask
from content_studio.generation.tasks.text import TextTask

__all__ = ["AudioTask", "AvatarVideoTask", "CodeTask", "FormatTask", "JobBackedFormatTask", "MindMapTask", "PresentationTask", "TextTask"]
