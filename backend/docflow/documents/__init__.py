"""Document storage and ownership checks."""
