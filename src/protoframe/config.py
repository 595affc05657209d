"""TOML-based configuration for protoframe connectors.

Provides ``load_config`` / ``discover_config`` for loading ``protoframe.toml``
and the frozen dataclasses holding default timeouts, connect-with-retry
budget and wire serialization.

Example ``protoframe.toml``::

    [ask]
    timeout = 10.0

    [ping]
    timeout = 10.0

    [connect]
    retries = 50
    timeout = 0.5

    [serialization]
    serializer = "json"
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from protoframe.codec import SerializerKind


__all__ = [
    "AskConfig",
    "ConnectConfig",
    "PingConfig",
    "ProtoframeConfig",
    "SerializationConfig",
    "discover_config",
    "load_config",
]

logger = logging.getLogger("protoframe.config")

CONFIG_FILENAME = "protoframe.toml"


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        msg = f"{name} must be positive, got {value}"
        raise ValueError(msg)


@dataclass(frozen=True)
class AskConfig:
    """Default deadline for ``ask`` calls that do not pass one.

    Parameters
    ----------
    timeout : float
        Seconds to wait for a response.

    Examples
    --------
    >>> AskConfig(timeout=2.5)
    AskConfig(timeout=2.5)
    """

    timeout: float = 10.0

    def __post_init__(self) -> None:
        _require_positive("ask.timeout", self.timeout)


@dataclass(frozen=True)
class PingConfig:
    """Default deadline for a single liveness ping."""

    timeout: float = 10.0

    def __post_init__(self) -> None:
        _require_positive("ping.timeout", self.timeout)


@dataclass(frozen=True)
class ConnectConfig:
    """Connect-with-retry budget.

    Parameters
    ----------
    retries : int
        Number of ping attempts before giving up.
    timeout : float
        Per-attempt ping deadline in seconds.

    Examples
    --------
    >>> ConnectConfig()
    ConnectConfig(retries=50, timeout=0.5)
    """

    retries: int = 50
    timeout: float = 0.5

    def __post_init__(self) -> None:
        _require_positive("connect.retries", self.retries)
        _require_positive("connect.timeout", self.timeout)


@dataclass(frozen=True)
class SerializationConfig:
    """Wire encoding; both peers must agree on it."""

    serializer: SerializerKind = "json"

    def __post_init__(self) -> None:
        if self.serializer not in ("json", "msgpack"):
            msg = f"Unknown serializer: {self.serializer!r}"
            raise ValueError(msg)


@dataclass(frozen=True)
class ProtoframeConfig:
    """Top-level configuration consumed by connectors.

    Examples
    --------
    >>> ProtoframeConfig().connect.retries
    50

    >>> config = load_config(Path("protoframe.toml"))
    """

    ask: AskConfig = field(default_factory=AskConfig)
    ping: PingConfig = field(default_factory=PingConfig)
    connect: ConnectConfig = field(default_factory=ConnectConfig)
    serialization: SerializationConfig = field(default_factory=SerializationConfig)


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``protoframe.toml``.

    Returns
    -------
    Path | None
        Path to the discovered config file, or ``None`` if not found.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> ProtoframeConfig:
    """Load a ``ProtoframeConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``protoframe.toml`` by walking up
    from the current working directory.  Returns the default config if no
    file is found.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    TypeError
        If a section contains an unknown key.
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return ProtoframeConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    logger.debug("Loaded configuration from %s", path)
    return ProtoframeConfig(
        ask=AskConfig(**raw.get("ask", {})),
        ping=PingConfig(**raw.get("ping", {})),
        connect=ConnectConfig(**raw.get("connect", {})),
        serialization=SerializationConfig(**raw.get("serialization", {})),
    )
