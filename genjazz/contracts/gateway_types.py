"""Named data shapes exchanged with the backends and the client.

Backend payloads are only partially known: the chord generator may add fields
at any time and the gateway must pass them through untouched.  The shapes
here are ``total=False`` TypedDicts describing the fields the gateway reads;
everything else rides along as plain dict entries.

Entity catalog:
  ChordSectionDict     — one section of a generated progression
  ChordResultDict      — chord backend response (key, structure, sections)
  SoloRequestDict      — body sent to the solo backend
  ErrorBodyDict        — uniform failure body returned to clients
  HealthServicesDict   — backend URLs reported by ``GET /health``
"""
from __future__ import annotations

from typing_extensions import TypedDict

# Canonical name of the MIDI field in gateway responses.
MIDI_FIELD = "midiBase64"

# Delimiter between section chord strings in the flattened progression.
CHORDS_DELIMITER = "|"

# Label exposed on every pipeline failure.
GENERATION_FAILED_LABEL = "Failed to generate random MIDI"


class ChordSectionDict(TypedDict, total=False):
    chords: str


class ChordResultDict(TypedDict, total=False):
    key: str
    structure: str
    sections: list[ChordSectionDict]


class SoloRequestDict(TypedDict):
    chords: str
    style: str
    tempo: int | float


class ErrorBodyDict(TypedDict):
    error: str
    details: str


class HealthServicesDict(TypedDict):
    chords: str
    solo: str
