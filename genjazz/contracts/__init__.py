"""Wire shapes shared by the gateway routes, stages and tests."""

from genjazz.contracts.gateway_types import (
    CHORDS_DELIMITER,
    GENERATION_FAILED_LABEL,
    MIDI_FIELD,
    ChordResultDict,
    ChordSectionDict,
    ErrorBodyDict,
    HealthServicesDict,
    SoloRequestDict,
)

__all__ = [
    "CHORDS_DELIMITER",
    "GENERATION_FAILED_LABEL",
    "MIDI_FIELD",
    "ChordResultDict",
    "ChordSectionDict",
    "ErrorBodyDict",
    "HealthServicesDict",
    "SoloRequestDict",
]
