"""Language resolution applied before any provider call.

A request language may arrive as an ISO code (``he``), a locale tag
(``he-IL``), or a language name (``Hebrew``). Resolution never substitutes a
default: a missing or unrecognizable value is reported as invalid and every
format task fails on it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final

LANGUAGE_NAMES: Final[dict[str, str]] = {
  "en": "english",
  "he": "hebrew",
  "ar": "arabic",
  "es": "spanish",
  "fr": "french",
  "de": "german",
  "it": "italian",
  "pt": "portuguese",
  "ru": "russian",
  "zh": "chinese",
  "ja": "japanese",
  "ko": "korean",
  "hi": "hindi",
  "tr": "turkish",
  "pl": "polish",
  "nl": "dutch",
  "sv": "swedish",
  "da": "danish",
  "no": "norwegian",
  "fi": "finnish",
  "cs": "czech",
  "ro": "romanian",
  "hu": "hungarian",
  "el": "greek",
  "th": "thai",
  "vi": "vietnamese",
  "id": "indonesian",
  "ms": "malay",
  "uk": "ukrainian",
  "bg": "bulgarian",
  "hr": "croatian",
  "sk": "slovak",
  "sl": "slovenian",
  "sr": "serbian",
  "et": "estonian",
  "lv": "latvian",
  "lt": "lithuanian",
  "mk": "macedonian",
  "sq": "albanian",
  "is": "icelandic",
  "ga": "irish",
  "mt": "maltese",
  "cy": "welsh",
  "eu": "basque",
  "ca": "catalan",
  "gl": "galician",
  "fa": "persian",
  "ur": "urdu",
}

# ISO 639-2 terminology and bibliographic codes.
ISO_639_2_CODES: Final[dict[str, tuple[str, ...]]] = {
  "en": ("eng",),
  "he": ("heb",),
  "ar": ("ara",),
  "es": ("spa",),
  "fr": ("fra", "fre"),
  "de": ("deu", "ger"),
  "it": ("ita",),
  "pt": ("por",),
  "ru": ("rus",),
  "zh": ("zho", "chi"),
  "ja": ("jpn",),
  "ko": ("kor",),
  "hi": ("hin",),
  "tr": ("tur",),
  "pl": ("pol",),
  "nl": ("nld", "dut"),
  "sv": ("swe",),
  "da": ("dan",),
  "no": ("nor", "nob", "nno"),
  "fi": ("fin",),
  "cs": ("ces", "cze"),
  "ro": ("ron", "rum"),
  "hu": ("hun",),
  "el": ("ell", "gre"),
  "th": ("tha",),
  "vi": ("vie",),
  "id": ("ind",),
  "ms": ("msa", "may"),
  "uk": ("ukr",),
  "bg": ("bul",),
  "hr": ("hrv",),
  "sk": ("slk", "slo"),
  "sl": ("slv",),
  "sr": ("srp",),
  "et": ("est",),
  "lv": ("lav",),
  "lt": ("lit",),
  "mk": ("mkd", "mac"),
  "sq": ("sqi", "alb"),
  "is": ("isl", "ice"),
  "ga": ("gle",),
  "mt": ("mlt",),
  "cy": ("cym", "wel"),
  "eu": ("eus", "baq"),
  "ca": ("cat",),
  "gl": ("glg",),
  "fa": ("fas", "per"),
  "ur": ("urd",),
}

# Locale tags and alternate names.
LANGUAGE_ALIASES: Final[dict[str, str]] = {
  "en-us": "en",
  "en-gb": "en",
  "he-il": "he",
  "iw": "he",
  "ar-sa": "ar",
  "ar-eg": "ar",
  "es-es": "es",
  "es-mx": "es",
  "fr-fr": "fr",
  "de-de": "de",
  "it-it": "it",
  "ja-jp": "ja",
  "ko-kr": "ko",
  "ru-ru": "ru",
  "tr-tr": "tr",
  "zh-cn": "zh",
  "zh-tw": "zh",
  "mandarin": "zh",
  "pt-br": "pt",
  "pt-pt": "pt",
  "farsi": "fa",
}

RTL_LANGUAGES: Final[frozenset[str]] = frozenset({"ar", "he", "fa", "ur"})

_LOOKUP: Final[dict[str, str]] = {
  **{code: code for code in LANGUAGE_NAMES},
  **{name: code for code, name in LANGUAGE_NAMES.items()},
  **{alias: code for code, aliases in ISO_639_2_CODES.items() for alias in aliases},
  **LANGUAGE_ALIASES,
}
_SEPARATOR = re.compile(r"[-_]")
_RESIDUAL_CODE = re.compile(r"^[a-z]{2,3}$")


@dataclass(frozen=True)
class LanguageProfile:
  """Result of resolving one raw language value; equality ignores the raw input."""

  raw_input: str | None = field(compare=False)
  normalized_code: str | None
  valid: bool
  reason: str | None = field(default=None, compare=False)


class LanguageGate:
  """Pure resolver over the static language table."""

  def resolve(self, raw_language: str | None) -> LanguageProfile:
    """Map a code, locale tag, or language name to a canonical code."""
    if raw_language is None or not str(raw_language).strip():
      return LanguageProfile(raw_input=raw_language, normalized_code=None, valid=False, reason="language is required and was not provided by the request or topic metadata")

    key = str(raw_language).strip().lower()
    direct = _LOOKUP.get(key)
    if direct:
      return LanguageProfile(raw_input=raw_language, normalized_code=direct, valid=True)

    base = _SEPARATOR.split(key, maxsplit=1)[0]
    from_base = _LOOKUP.get(base)
    if from_base:
      return LanguageProfile(raw_input=raw_language, normalized_code=from_base, valid=True)

    if _RESIDUAL_CODE.match(base):
      return LanguageProfile(raw_input=raw_language, normalized_code=base, valid=True, reason="unlisted code accepted as-is")

    return LanguageProfile(raw_input=raw_language, normalized_code=None, valid=False, reason=f"unrecognized language {raw_language!r}")


def language_name(code: str) -> str:
  """Return the English name of a language code, or the code itself when unlisted."""
  return LANGUAGE_NAMES.get(code.lower(), code).title()


def is_rtl(code: str) -> bool:
  return code.lower() in RTL_LANGUAGES


def preservation_instruction(code: str) -> str:
  """Instruction that keeps generated content in the request language."""
  direction = "right-to-left" if is_rtl(code) else "left-to-right"
  name = language_name(code)
  return (
    f"Write the entire output in {name} ({code}). Do not translate the source material into another language. "
    f"Use {direction} text direction. Keep programming syntax and technical identifiers unchanged; do not mix in English otherwise."
  )
