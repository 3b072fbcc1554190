"""Utility helpers for filterbar."""
