"""Filename contract tests."""

import pytest

from voice_collector.core.catalogue import DEFAULT_CATALOGUE
from voice_collector.core.errors import InvalidFilename, InvalidSubjectId
from voice_collector.core.filenames import (
    FilenameParts,
    decode_filename,
    encode_filename,
    is_valid_filename,
    is_valid_subject_id,
    validate_subject_id,
)


def test_encode_letter_and_command():
    assert encode_filename("42", 1, "A") == "42_1A.webm"
    assert encode_filename("7", 3, "Backspace", "wav") == "7_3Backspace.wav"


def test_decode_every_catalogue_item():
    for repetition in range(1, DEFAULT_CATALOGUE.runs + 1):
        for item in DEFAULT_CATALOGUE.items:
            name = encode_filename("1234", repetition, item)
            assert decode_filename(name) == FilenameParts("1234", repetition, item, "webm")


def test_decode_is_case_insensitive_and_returns_catalogue_spelling():
    parts = decode_filename("42_2done.WAV")
    assert parts.item == "Done"
    assert parts.repetition == 2
    assert parts.extension == "wav"


def test_encode_rejects_unknown_item():
    with pytest.raises(InvalidFilename):
        encode_filename("42", 1, "Hello")


@pytest.mark.parametrize(
    "name",
    [
        "42_1A.png",
        "42_1A",
        "abc_1A.webm",
        "42_A.webm",
        "42_1AB.webm",
        "42_1A.webm.exe",
        "",
    ],
)
def test_pattern_violations_are_invalid(name):
    assert not is_valid_filename(name)


@pytest.mark.parametrize("bad", ["..", "/", "\\", "\0"])
@pytest.mark.parametrize("extension", ["wav", "webm", "png"])
def test_traversal_characters_are_always_invalid(bad, extension):
    assert not is_valid_filename(f"42_1A{bad}.{extension}")
    assert not is_valid_filename(f"{bad}42_1A.{extension}")


@pytest.mark.parametrize("char", list('<>:"|?*') + ["\n", "\x07"])
def test_forbidden_characters_are_invalid(char):
    assert not is_valid_filename(f"42_1A{char}.wav")


def test_non_strings_are_invalid():
    assert not is_valid_filename(None)
    assert not is_valid_filename(42)


def test_subject_id_validation():
    assert is_valid_subject_id("0042")
    assert not is_valid_subject_id("42a")
    assert not is_valid_subject_id("")
    with pytest.raises(InvalidSubjectId):
        validate_subject_id("../42")
