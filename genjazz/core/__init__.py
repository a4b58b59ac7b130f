"""
GenJazz gateway core.

1. ERRORS (errors.py)
   - BackendError / StageValidationError taxonomy

2. PIPELINE (pipeline.py)
   - Chords → solo state machine, response merge, metrics row

3. SANITIZE (sanitize.py)
   - Single-line, delimiter-free log fields
"""
