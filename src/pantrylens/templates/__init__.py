"""Packaged lexicon and vocabulary data."""
