from loki_relay.app import create_app
from loki_relay.errors import ConfigurationError, RelayError, ValidationError
from loki_relay.models import BodyMode, LogEntry, RelayConfig, RelayRequest, RelayResponse
from loki_relay.relay import Relay

__all__ = [
    "BodyMode",
    "ConfigurationError",
    "LogEntry",
    "Relay",
    "RelayConfig",
    "RelayError",
    "RelayRequest",
    "RelayResponse",
    "ValidationError",
    "create_app",
]
