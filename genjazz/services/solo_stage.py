"""Solo stage: improvise over the flattened progression and pull out the MIDI.

The solo backend has named its MIDI field differently across versions
(``midiBase64``, ``midi_base64``, bare ``data``).  Extraction walks a
prioritised list of extractors and takes the first non-empty string, so a
cosmetic rename on the backend never breaks the gateway.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from genjazz.contracts.gateway_types import SoloRequestDict
from genjazz.core.errors import StageValidationError
from genjazz.services.backend_client import SOLO_BACKEND, BackendClient

SOLO_PATH = "/api/generate-solo"

MidiExtractor = Callable[[dict[str, object]], object]


def _field(name: str) -> MidiExtractor:
    def extract(payload: dict[str, object]) -> object:
        return payload.get(name)

    extract.__name__ = f"field_{name}"
    return extract


# Priority order matters: newest field name first.
MIDI_EXTRACTORS: tuple[MidiExtractor, ...] = (
    _field("midiBase64"),
    _field("midi_base64"),
    _field("data"),
)


@dataclass(frozen=True)
class SoloStageOutput:
    midi: str
    info: str
    style: str
    tempo: int | float
    elapsed_ms: int
    size_bytes: int


def extract_midi(
    payload: object,
    extractors: tuple[MidiExtractor, ...] = MIDI_EXTRACTORS,
) -> str:
    """Return the base64 MIDI string from a solo response.

    Raises ``StageValidationError("no midi payload")`` when no extractor
    yields a non-empty string.
    """
    if isinstance(payload, dict):
        for extractor in extractors:
            value = extractor(payload)
            if isinstance(value, str) and value:
                return value
    raise StageValidationError("no midi payload")


def summarize_solo(style: str, tempo: int | float, midi: str) -> str:
    """``style|tempo|midiByteLength``."""
    return f"{style}|{tempo}|{len(midi.encode('utf-8'))}"


class SoloStage:
    """Runs the solo half of the pipeline against a ``BackendClient``."""

    def __init__(
        self,
        backend: BackendClient,
        default_style: str,
        default_tempo: int | float,
    ):
        self._backend = backend
        self.default_style = default_style
        self.default_tempo = default_tempo

    def build_request(
        self, chords: str, style: str | None, tempo: int | float | None
    ) -> SoloRequestDict:
        if not chords:
            raise StageValidationError("empty chords")
        return SoloRequestDict(
            chords=chords,
            style=style or self.default_style,
            tempo=tempo or self.default_tempo,
        )

    async def run(
        self,
        chords: str,
        style: str | None = None,
        tempo: int | float | None = None,
    ) -> SoloStageOutput:
        request = self.build_request(chords, style, tempo)
        call = await self._backend.call(SOLO_BACKEND, "POST", SOLO_PATH, dict(request))
        try:
            midi = extract_midi(call.payload)
        except StageValidationError as exc:
            exc.elapsed_ms = call.elapsed_ms
            exc.size_bytes = call.size_bytes
            raise
        return SoloStageOutput(
            midi=midi,
            info=summarize_solo(request["style"], request["tempo"], midi),
            style=request["style"],
            tempo=request["tempo"],
            elapsed_ms=call.elapsed_ms,
            size_bytes=call.size_bytes,
        )
