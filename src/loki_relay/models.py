from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from loki_relay.errors import ConfigurationError

DEFAULT_DOCS_URL = (
    "https://grafana.com/docs/loki/latest/reference/loki-http-api/#ingest-logs"
)

Scalar = str | int | float | bool | None


class BodyMode(str, enum.Enum):
    STRUCTURED = "structured"
    LABELED = "labeled"
    PASSTHROUGH = "passthrough"


class Clock(Protocol):
    def __call__(self) -> int: ...


@dataclass(frozen=True)
class RelayConfig:
    host: str = ""
    username: str = ""
    password: str = field(default="", repr=False)
    port: str = "443"
    mode: BodyMode = BodyMode.STRUCTURED
    proxy_name: str = "loki-relay"
    docs_url: str = DEFAULT_DOCS_URL

    def __post_init__(self) -> None:
        if not isinstance(self.mode, BodyMode):
            try:
                mode = BodyMode(self.mode)
            except ValueError:
                allowed = ", ".join(m.value for m in BodyMode)
                raise ConfigurationError(
                    f"Server configuration error: unknown mode {self.mode!r} "
                    f"(expected one of: {allowed})"
                ) from None
            object.__setattr__(self, "mode", mode)
        if not self.port:
            object.__setattr__(self, "port", "443")
        if not self.proxy_name:
            raise ConfigurationError("Server configuration error: empty proxy name")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RelayConfig:
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("LOKI_HOST", ""),
            username=env.get("LOKI_USERNAME", ""),
            password=env.get("LOKI_PASSWORD", ""),
            port=env.get("LOKI_PORT", "443"),
            mode=env.get("RELAY_MODE", BodyMode.STRUCTURED.value),  # type: ignore[arg-type]
            proxy_name=env.get("RELAY_PROXY_NAME", "loki-relay"),
            docs_url=env.get("RELAY_DOCS_URL", DEFAULT_DOCS_URL),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.host and self.username and self.password)

    @property
    def scheme(self) -> str:
        return "https" if self.port == "443" else "http"


@dataclass(frozen=True, slots=True)
class LogEntry:
    message: str
    timestamp: str
    metadata: dict[str, Scalar] = field(default_factory=dict)

    @property
    def value(self) -> list[Any]:
        """The Loki value tuple; metadata is only sent when non-empty."""
        if self.metadata:
            return [self.timestamp, self.message, self.metadata]
        return [self.timestamp, self.message]


@dataclass(frozen=True)
class RelayRequest:
    method: str
    body: bytes = b""
    query: list[tuple[str, str]] = field(default_factory=list)
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


@dataclass
class RelayResponse:
    status_code: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
