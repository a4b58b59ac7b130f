"""GenJazz gateway: random chords plus an improvised solo in one request."""
