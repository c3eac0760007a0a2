"""Pure byte-level helpers."""
