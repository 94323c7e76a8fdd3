"""Blob persistence for serialized collections."""
