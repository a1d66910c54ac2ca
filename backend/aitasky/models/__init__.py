"""Database and API models."""
