"""Concrete capture, speech, translation and synthesis services."""
