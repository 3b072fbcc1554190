"""Configuration utilities for filterbar."""

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from ..exceptions import ConfigurationError
from .constants import DEFAULT_SCOPE, ENV_VAR_DEFINITIONS

logger = logging.getLogger(__name__)


def get_candidates_path(override: Optional[str] = None) -> Path:
    """Get the candidate file path.

    An explicit override wins, then FILTERBAR_CANDIDATES_FILE, then the
    default under ~/.config/filterbar.
    """
    raw = override or os.environ.get("FILTERBAR_CANDIDATES_FILE")
    if raw:
        return Path(raw).expanduser()
    return Path(ENV_VAR_DEFINITIONS["FILTERBAR_CANDIDATES_FILE"]["default"])


def get_default_scope() -> str:
    """Scope key to use when the caller does not name one."""
    scope = os.environ.get("FILTERBAR_SCOPE", "").strip()
    return scope or DEFAULT_SCOPE


def get_log_level() -> str:
    """Log level name from FILTERBAR_LOG_LEVEL.

    Raises:
        ConfigurationError: If the variable holds an unknown level name.
    """
    value = os.environ.get("FILTERBAR_LOG_LEVEL")
    is_valid, error = validate_env_var("FILTERBAR_LOG_LEVEL", value)
    if not is_valid:
        raise ConfigurationError(error or "Invalid log level", setting="FILTERBAR_LOG_LEVEL")
    if value is None:
        return ENV_VAR_DEFINITIONS["FILTERBAR_LOG_LEVEL"]["default"]
    return value.upper()


def validate_env_var(name: str, value: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate a single environment variable value.

    Args:
        name: The environment variable name.
        value: The current value (or None if not set).

    Returns:
        Tuple of (is_valid, error_message).
    """
    if name not in ENV_VAR_DEFINITIONS:
        return True, None

    if value is None:
        return True, None

    valid_values = ENV_VAR_DEFINITIONS[name].get("valid_values")
    if valid_values is None:
        return True, None

    if value.lower() not in [v.lower() for v in valid_values]:
        return False, f"Invalid value '{value}' for {name}. Valid values: {valid_values}"

    return True, None


def validate_all_env_vars() -> List[str]:
    """Validate all filterbar environment variables.

    Returns:
        List of error messages (empty if everything is valid).
    """
    errors = []
    for name in ENV_VAR_DEFINITIONS:
        is_valid, error = validate_env_var(name, os.environ.get(name))
        if not is_valid and error:
            errors.append(error)
    if errors:
        logger.debug("Environment validation found %d problem(s)", len(errors))
    return errors
