"""Slide, paragraph and run views derived from the record tree."""
