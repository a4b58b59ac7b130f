"""Chord progression service: HTTP wrapper around the GenJazz chords jar."""
