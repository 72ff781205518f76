"""HTTP API for the translation pipeline."""
