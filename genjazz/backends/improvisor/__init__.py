"""Solo improvisor service: HTTP wrapper around the GenJazz solos jar."""
