"""
Centralized constants for filterbar.

Query syntax characters, sentinel values and environment variable
definitions live here so the tokenizer, quoter and settings agree on them.
"""

from pathlib import Path

# =============================================================================
# QUERY SYNTAX
# =============================================================================

KEY_SEPARATOR = ":"

LABEL_SIGIL = "~"
USER_SIGIL = "@"
MILESTONE_SIGIL = "%"
SIGILS = (LABEL_SIGIL, USER_SIGIL, MILESTONE_SIGIL)

SINGLE_QUOTE = "'"
DOUBLE_QUOTE = '"'
QUOTE_CHARS = (SINGLE_QUOTE, DOUBLE_QUOTE)

# Serialized value of the "no value set" sentinel (never sigil-prefixed)
NONE_VALUE = "none"

# =============================================================================
# SCOPES & FILES
# =============================================================================

DEFAULT_SCOPE = "default"
FILTERBAR_CONFIG_DIR = Path.home() / ".config" / "filterbar"
DEFAULT_CANDIDATES_FILE = FILTERBAR_CONFIG_DIR / "candidates.yaml"

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

ENV_VAR_DEFINITIONS = {
    "FILTERBAR_CANDIDATES_FILE": {
        "description": "YAML file with candidate values per scope",
        "default": str(DEFAULT_CANDIDATES_FILE),
        "valid_values": None,
    },
    "FILTERBAR_SCOPE": {
        "description": "Scope key used when none is given on the command line",
        "default": DEFAULT_SCOPE,
        "valid_values": None,
    },
    "FILTERBAR_LOG_LEVEL": {
        "description": "Log level for the filterbar loggers",
        "default": "WARNING",
        "valid_values": LOG_LEVELS,
    },
}
