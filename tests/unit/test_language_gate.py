from __future__ import annotations

import pytest

from content_studio.generation.language import ISO_639_2_CODES, LANGUAGE_NAMES, LanguageGate, is_rtl, language_name, preservation_instruction
from content_studio.providers.voices import VoiceResolver


@pytest.mark.parametrize(
  ("raw", "expected"),
  [
    ("he", "he"),
    ("HE", "he"),
    ("he-IL", "he"),
    ("he_IL", "he"),
    ("Hebrew", "he"),
    ("heb", "he"),
    ("en-US", "en"),
    ("English", "en"),
    ("pt-BR", "pt"),
    ("zh-TW", "zh"),
    ("farsi", "fa"),
    ("  arabic  ", "ar"),
    ("de-AT", "de"),
  ],
)
def test_resolve_maps_codes_tags_and_names(raw: str, expected: str) -> None:
  profile = LanguageGate().resolve(raw)

  assert profile.valid is True
  assert profile.normalized_code == expected
  assert profile.raw_input == raw


def test_resolve_accepts_unlisted_two_or_three_letter_codes() -> None:
  gate = LanguageGate()

  assert gate.resolve("tlh").normalized_code == "tlh"
  assert gate.resolve("xx-YY").normalized_code == "xx"
  assert gate.resolve("xx-YY").valid is True


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_language_is_invalid_not_defaulted(raw: str | None) -> None:
  profile = LanguageGate().resolve(raw)

  assert profile.valid is False
  assert profile.normalized_code is None
  assert "required" in (profile.reason or "")


@pytest.mark.parametrize("raw", ["klingonese", "12", "e", "en!"])
def test_unrecognized_language_is_invalid(raw: str) -> None:
  profile = LanguageGate().resolve(raw)

  assert profile.valid is False
  assert profile.normalized_code is None
  assert profile.reason


@pytest.mark.parametrize("raw", ["he-IL", "Hebrew", "en", "tlh", "pt_BR", "japanese", None, "", "klingonese"])
def test_resolution_is_idempotent(raw: str | None) -> None:
  gate = LanguageGate()
  first = gate.resolve(raw)

  assert gate.resolve(first.normalized_code) == first


def test_language_helpers() -> None:
  assert language_name("he") == "Hebrew"
  assert language_name("tlh") == "Tlh"
  assert is_rtl("ar") is True
  assert is_rtl("en") is False

  instruction = preservation_instruction("he")
  assert "Hebrew" in instruction
  assert "right-to-left" in instruction
  assert "Do not translate" in instruction


@pytest.mark.parametrize(
  ("raw", "expected"),
  [
    ("tur", "tr"),
    ("pol", "pl"),
    ("hin", "hi"),
    ("nld", "nl"),
    ("dut", "nl"),
    ("swe", "sv"),
    ("ukr", "uk"),
    ("cze", "cs"),
    ("nob", "no"),
    ("TUR", "tr"),
    ("tr-TR", "tr"),
    ("it-IT", "it"),
    ("ko-KR", "ko"),
  ],
)
def test_three_letter_codes_resolve_to_two_letter_codes(raw: str, expected: str) -> None:
  assert LanguageGate().resolve(raw).normalized_code == expected


def test_every_listed_language_has_a_three_letter_code() -> None:
  gate = LanguageGate()

  for code, aliases in ISO_639_2_CODES.items():
    assert code in LANGUAGE_NAMES
    for alias in aliases:
      assert gate.resolve(alias).normalized_code == code
  assert set(ISO_639_2_CODES) == set(LANGUAGE_NAMES)


def test_three_letter_code_selects_the_language_voice() -> None:
  voices = VoiceResolver(default_voice_id="default", overrides={"tr": "voice-tr"})

  assert voices.video_voice(LanguageGate().resolve("tur").normalized_code) == "voice-tr"
