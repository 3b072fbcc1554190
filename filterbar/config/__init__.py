"""Configuration for filterbar."""
