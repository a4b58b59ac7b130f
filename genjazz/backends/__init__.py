"""Thin HTTP services wrapping the GenJazz native batch generators."""
