"""Top-level git-vendor commands (one module per command, auto-discovered)."""
