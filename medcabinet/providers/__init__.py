"""Reminder delivery facilities."""
