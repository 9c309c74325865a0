"""Async client for the Teamup Calendar API.

Provides:
- `TeamupClient` with one coroutine per Teamup resource operation
- Option normalization and kind validation before any request is sent
- Environment-driven settings (TEAMUP_* variables)
- A `teamup` command-line tool
"""

from teamup_client.client import TeamupClient, TokenCheckResult
from teamup_client.config import ClientConfig, Settings, get_settings
from teamup_client.exceptions import (
    ArgumentTypeError,
    ConfigurationError,
    MissingFieldError,
    OptionsError,
    RemoteError,
    TeamupError,
    TransportError,
    TypeMismatchError,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "TeamupClient",
    "TokenCheckResult",
    # Configuration
    "ClientConfig",
    "Settings",
    "get_settings",
    # Errors
    "TeamupError",
    "ConfigurationError",
    "OptionsError",
    "ArgumentTypeError",
    "TypeMismatchError",
    "MissingFieldError",
    "TransportError",
    "RemoteError",
]
