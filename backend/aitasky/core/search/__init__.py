"""Web search integration."""
