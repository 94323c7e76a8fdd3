"""Localization helpers used for reminder labels."""
