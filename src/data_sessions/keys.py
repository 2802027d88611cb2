"""Store key derivation for data session names."""

from .exceptions import ConfigurationError

SESSION_KEY_PREFIX = "dataSession:"


def format_key(name: str) -> str:
    """Derive the store key for a session name.

    Raises:
        ConfigurationError: If the name is empty or None
    """
    if not name:
        raise ConfigurationError("Missing data session name")
    return SESSION_KEY_PREFIX + name


def is_session_key(key: str) -> bool:
    return key.startswith(SESSION_KEY_PREFIX)


def extract_name(key: str) -> str:
    """Strip the session prefix from a store key."""
    return key.removeprefix(SESSION_KEY_PREFIX)
