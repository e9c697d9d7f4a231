"""External interfaces (HTTP API and CLI)."""
