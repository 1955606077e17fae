"""Application configuration helpers."""

from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class ConfigurationError(ValueError):
    """Raised when the startup configuration cannot be used."""


def parse_duration(value: str) -> float:
    """Parse a Go style duration (``30s``, ``1m30s``, ``250ms``) into seconds.

    A bare number is interpreted as seconds.
    """

    text = value.strip()
    if not text:
        raise ConfigurationError("Empty duration")
    try:
        return float(text)
    except ValueError:
        pass

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    total = 0.0
    position = 0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position == 0 or position != len(text):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    return sign * total


def parse_bind_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` (or ``:port``) into its parts; an empty host binds all interfaces."""

    host, sep, port_text = address.strip().rpartition(":")
    if not sep:
        raise ConfigurationError(f"Invalid bind address (expected host:port): {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    try:
        port = int(port_text)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid port in bind address: {address!r}") from exc
    if not 0 <= port <= 65535:
        raise ConfigurationError(f"Port out of range in bind address: {address!r}")
    return host, port


@dataclass(slots=True)
class Config:
    """Runtime configuration parsed from environment variables."""

    ops: float = 1.0
    metrics_address: str = ":9696"
    namespace: str = "load-test"
    timeout_seconds: float = 30 * 60.0
    poll_interval_seconds: float = 1.0
    max_concurrency: int = 0
    dns_domain: str = ""
    kubeconfig: Optional[str] = None
    verbose: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables and defaults."""

        load_dotenv(find_dotenv(usecwd=True))

        def _get_int(name: str, default: int) -> int:
            value = os.getenv(name)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError as exc:
                raise ConfigurationError(f"Invalid integer for {name}: {value}") from exc

        def _get_float(name: str, default: float) -> float:
            value = os.getenv(name)
            if value is None:
                return default
            try:
                return float(value)
            except ValueError as exc:
                raise ConfigurationError(f"Invalid float for {name}: {value}") from exc

        def _get_duration(name: str, default: float) -> float:
            value = os.getenv(name)
            if value is None:
                return default
            try:
                return parse_duration(value)
            except ConfigurationError as exc:
                raise ConfigurationError(f"Invalid duration for {name}: {value}") from exc

        def _get_bool(name: str, default: bool) -> bool:
            value = os.getenv(name)
            if value is None:
                return default
            return value.strip().lower() in {"1", "true", "yes", "on"}

        return cls(
            ops=_get_float("KUBERNOISY_OPS", 1.0),
            metrics_address=os.getenv("KUBERNOISY_METRICS_ADDRESS", ":9696"),
            namespace=os.getenv("KUBERNOISY_NAMESPACE", "load-test"),
            timeout_seconds=_get_duration("KUBERNOISY_TIMEOUT", 30 * 60.0),
            poll_interval_seconds=_get_duration("KUBERNOISY_POLL_INTERVAL", 1.0),
            max_concurrency=_get_int("KUBERNOISY_MAX_CONCURRENCY", 0),
            dns_domain=os.getenv("KUBERNOISY_DNS_DOMAIN", ""),
            kubeconfig=os.getenv("KUBECONFIG") or None,
            verbose=_get_bool("KUBERNOISY_VERBOSE", False),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        if not math.isfinite(self.ops) or self.ops <= 0:
            raise ConfigurationError(f"ops must be a finite number > 0, got {self.ops}")
        if self.timeout_seconds < 0:
            raise ConfigurationError("timeout cannot be negative")
        if not math.isfinite(self.poll_interval_seconds) or self.poll_interval_seconds <= 0:
            raise ConfigurationError("poll interval must be a finite number > 0")
        if self.max_concurrency < 0:
            raise ConfigurationError("max concurrency cannot be negative")
        if not self.namespace:
            raise ConfigurationError("namespace cannot be empty")
        parse_bind_address(self.metrics_address)

    @property
    def tick_interval_seconds(self) -> float:
        return 1.0 / self.ops


__all__ = ["Config", "ConfigurationError", "parse_bind_address", "parse_duration"]
