"""CLI command modules for filterbar."""
