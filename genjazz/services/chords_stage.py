"""Chord stage: fetch a random progression and flatten it for the solo stage.

The chord backend is asked for a fully random progression.  Its answer is
validated (there must be at least one section) and reduced to the
``|``-delimited chord string the solo generator understands.  The raw result
is kept intact for the client response.
"""
from __future__ import annotations

from dataclasses import dataclass

from genjazz.contracts.gateway_types import CHORDS_DELIMITER, ChordResultDict
from genjazz.core.errors import StageValidationError
from genjazz.services.backend_client import CHORDS_BACKEND, BackendClient

# key / structure / modulation selectors; opaque to the gateway.
RANDOM_SELECTORS: tuple[str, str, str] = ("Random", "Random", "Random")


@dataclass(frozen=True)
class ChordStageOutput:
    result: ChordResultDict
    flattened: str
    info: str
    elapsed_ms: int
    size_bytes: int


def validate_sections(payload: object) -> list[dict[str, object]]:
    """Return the section list of a chord result or raise ``StageValidationError``."""
    sections = payload.get("sections") if isinstance(payload, dict) else None
    if not isinstance(sections, list) or not sections:
        raise StageValidationError("no sections")
    for section in sections:
        if not isinstance(section, dict) or not isinstance(section.get("chords"), str):
            raise StageValidationError("malformed section")
    return sections


def flatten_chords(sections: list[dict[str, object]]) -> str:
    """Join each section's ``chords`` with ``|``, keeping section order."""
    return CHORDS_DELIMITER.join(str(s["chords"]) for s in sections)


def summarize_chords(result: dict[str, object], section_count: int) -> str:
    """``key|structure|sectionCount``; chord content is not included."""
    key = result.get("key")
    structure = result.get("structure")
    return f"{key if key is not None else ''}|{structure if structure is not None else ''}|{section_count}"


class ChordsStage:
    """Runs the chord half of the pipeline against a ``BackendClient``."""

    def __init__(self, backend: BackendClient):
        self._backend = backend

    @property
    def path(self) -> str:
        return "/api/generate/" + "/".join(RANDOM_SELECTORS)

    async def run(self) -> ChordStageOutput:
        call = await self._backend.call(CHORDS_BACKEND, "GET", self.path)
        try:
            sections = validate_sections(call.payload)
        except StageValidationError as exc:
            exc.elapsed_ms = call.elapsed_ms
            exc.size_bytes = call.size_bytes
            raise
        result: ChordResultDict = call.payload  # type: ignore[assignment]  # validated above
        return ChordStageOutput(
            result=result,
            flattened=flatten_chords(sections),
            info=summarize_chords(call.payload, len(sections)),  # type: ignore[arg-type]
            elapsed_ms=call.elapsed_ms,
            size_bytes=call.size_bytes,
        )
