"""Database engine and table initialization."""
