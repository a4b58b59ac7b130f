"""Tests for the chord stage: validation, flattening, summary."""
from __future__ import annotations

import pytest

from genjazz.core.errors import StageValidationError
from genjazz.services.backend_client import BackendClient
from genjazz.services.chords_stage import (
    ChordsStage,
    flatten_chords,
    summarize_chords,
    validate_sections,
)
from tests.helpers import CHORDS_URL, FakeBackends, chord_result, make_response


@pytest.mark.parametrize(
    "sections, expected",
    [
        ([{"chords": "Cmaj7"}], "Cmaj7"),
        ([{"chords": "Cmaj7"}, {"chords": "Dm7"}], "Cmaj7|Dm7"),
        ([{"chords": "Dm7 G7"}, {"chords": "Cmaj7"}, {"chords": "A7"}], "Dm7 G7|Cmaj7|A7"),
        ([{"chords": "B"}, {"chords": "A"}], "B|A"),
    ],
)
def test_flatten_chords_preserves_order(sections, expected) -> None:
    assert flatten_chords(sections) == expected


def test_flatten_keeps_empty_sections_in_place() -> None:
    assert flatten_chords([{"chords": "C"}, {"chords": ""}, {"chords": "F"}]) == "C||F"


@pytest.mark.parametrize(
    "payload",
    [
        {"sections": []},
        {"key": "C"},
        {"sections": None},
        {"sections": "Cmaj7|Dm7"},
        [],
        "not an object",
    ],
)
def test_validate_sections_rejects_missing_or_empty(payload) -> None:
    with pytest.raises(StageValidationError, match="no sections"):
        validate_sections(payload)


@pytest.mark.parametrize(
    "sections",
    [[{"bars": 8}], [{"chords": 7}], ["Cmaj7"]],
)
def test_validate_sections_rejects_malformed_section(sections) -> None:
    with pytest.raises(StageValidationError, match="malformed section"):
        validate_sections({"sections": sections})


def test_summary_is_key_structure_count() -> None:
    assert summarize_chords({"key": "Bb", "structure": "ABAC"}, 4) == "Bb|ABAC|4"
    assert summarize_chords({}, 1) == "||1"


@pytest.mark.asyncio
async def test_run_requests_random_progression(backend: BackendClient, fake_backends: FakeBackends) -> None:
    output = await ChordsStage(backend).run()

    assert fake_backends.chords_calls == [
        ("GET", f"{CHORDS_URL}/api/generate/Random/Random/Random", None)
    ]
    assert output.result == chord_result()
    assert output.flattened == "Cmaj7|Dm7"
    assert output.info == "C|AABA|2"
    assert output.size_bytes > 0


@pytest.mark.asyncio
async def test_run_attaches_measurements_to_validation_error(
    backend: BackendClient, fake_backends: FakeBackends
) -> None:
    fake_backends.chords = make_response(json_body={"sections": []})

    with pytest.raises(StageValidationError) as exc_info:
        await ChordsStage(backend).run()

    assert exc_info.value.size_bytes == len('{"sections":[]}')
    assert exc_info.value.elapsed_ms is not None
