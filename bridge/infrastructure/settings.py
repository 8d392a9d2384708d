"""
Application settings.

Provides typed configuration built from environment variables.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Final, Mapping, Optional


# =============================================================================
# Helpers
# =============================================================================


_WINDOWS_COM_PATTERN: Final[re.Pattern[str]] = re.compile(r"^COM(\d+)$", re.IGNORECASE)


def normalize_port_path(path: str) -> str:
    """
    Normalise a serial port path.

    Windows ports ``COM10`` and above must be opened as ``\\\\.\\COMnn``;
    everything else is returned unchanged.
    """
    match = _WINDOWS_COM_PATTERN.match(path.strip())
    if match and int(match.group(1)) >= 10:
        return f"\\\\.\\COM{match.group(1)}"
    return path


def _int(env: Mapping[str, str], key: str, default: int, minimum: Optional[int] = None) -> int:
    raw = env.get(key)
    try:
        value = int(raw) if raw not in (None, "") else default
    except ValueError:
        value = default
    if minimum is not None:
        value = max(minimum, value)
    return value


# =============================================================================
# Configuration Classes
# =============================================================================


@dataclass(frozen=True)
class HttpSettings:
    """HTTP listen address."""

    host: str = "127.0.0.1"
    port: int = 9000
    cors_origins: tuple[str, ...] = ("http://localhost:5173",)


@dataclass(frozen=True)
class FiscalDeviceSettings:
    """One fiscal register endpoint."""

    label: str
    port: str
    baudrate: int = 115200
    response_timeout_ms: int = 6000
    retries: int = 2
    retry_delay_ms: int = 150


@dataclass(frozen=True)
class PosDeviceSettings:
    """One POS terminal endpoint."""

    label: str
    port: str
    baudrate: int = 115200


@dataclass(frozen=True)
class PosSettings:
    """POS exchange timing."""

    enq_ack_timeout_ms: int = 2500
    tx_timeout_ms: int = 200000


@dataclass(frozen=True)
class AgentSettings:
    """Job processing and report delivery."""

    backend_url: str = "http://localhost:5000"
    agent_key: str = "AGENT_DE_TEST"
    fiscal_device: str = "A"
    pos_timeout_ms: int = 180000
    operator: str = "30"
    password: str = "0030"
    till: str = "1"


@dataclass(frozen=True)
class RedisSettings:
    """Redis connection settings."""

    host: str = "localhost"
    port: int = 6379
    job_queue: str = "agent_jobs"
    decode_responses: bool = True


# =============================================================================
# Main Settings
# =============================================================================


DEVICE_LABELS: Final[tuple[str, ...]] = ("A", "B")


@dataclass
class Settings:
    """
    Main application settings.

    Aggregates all configuration sections.
    """

    http: HttpSettings = field(default_factory=HttpSettings)
    fiscal_devices: tuple[FiscalDeviceSettings, ...] = (
        FiscalDeviceSettings(label="A", port="/dev/ttyUSB0"),
        FiscalDeviceSettings(label="B", port="/dev/ttyUSB1"),
    )
    pos_devices: tuple[PosDeviceSettings, ...] = (
        PosDeviceSettings(label="A", port="/dev/ttyACM0"),
        PosDeviceSettings(label="B", port="/dev/ttyACM1"),
    )
    pos: PosSettings = field(default_factory=PosSettings)
    agent: AgentSettings = field(default_factory=AgentSettings)
    redis: RedisSettings = field(default_factory=RedisSettings)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        env: Variable mapping (default: ``os.environ``).

    Returns:
        Settings instance.
    """
    env = os.environ if env is None else env

    default_baud = _int(env, "DEFAULT_BAUD", 115200)
    timeout_ms = _int(env, "RESPONSE_TIMEOUT_MS", 6000, minimum=1)
    retries = _int(env, "CMD_RETRIES", 2, minimum=1)
    retry_delay_ms = _int(env, "CMD_RETRY_DELAY_MS", 150, minimum=0)

    default_fiscal_ports = {"A": "/dev/ttyUSB0", "B": "/dev/ttyUSB1"}
    fiscal_devices = tuple(
        FiscalDeviceSettings(
            label=label,
            port=normalize_port_path(env.get(f"DEV_{label}_PORT") or default_fiscal_ports[label]),
            baudrate=_int(env, f"DEV_{label}_BAUD", default_baud),
            response_timeout_ms=_int(env, f"DEV_{label}_TIMEOUT_MS", timeout_ms, minimum=1),
            retries=_int(env, f"DEV_{label}_RETRIES", retries, minimum=1),
            retry_delay_ms=_int(env, f"DEV_{label}_RETRY_DELAY_MS", retry_delay_ms, minimum=0),
        )
        for label in DEVICE_LABELS
    )

    pos_baud = _int(env, "POS_BAUD", 115200)
    default_pos_ports = {"A": "/dev/ttyACM0", "B": "/dev/ttyACM1"}
    pos_devices = tuple(
        PosDeviceSettings(
            label=label,
            port=normalize_port_path(env.get(f"POS_DEV_{label}") or default_pos_ports[label]),
            baudrate=pos_baud,
        )
        for label in DEVICE_LABELS
    )

    return Settings(
        http=HttpSettings(
            host=env.get("HTTP_HOST", "127.0.0.1"),
            port=_int(env, "HTTP_PORT", 9000),
            cors_origins=tuple(
                origin.strip()
                for origin in env.get("HTTP_CORS_ORIGINS", "http://localhost:5173").split(",")
                if origin.strip()
            ),
        ),
        fiscal_devices=fiscal_devices,
        pos_devices=pos_devices,
        pos=PosSettings(
            enq_ack_timeout_ms=_int(env, "POS_ENQ_ACK_TIMEOUT_MS", 2500, minimum=1),
            tx_timeout_ms=_int(env, "POS_TX_TIMEOUT_MS", 200000, minimum=1),
        ),
        agent=AgentSettings(
            backend_url=env.get("AGENT_BACKEND_URL", "http://localhost:5000").rstrip("/"),
            agent_key=env.get("AGENT_KEY", "AGENT_DE_TEST"),
            fiscal_device=env.get("AGENT_FISCAL_DEVICE", "A").upper(),
            pos_timeout_ms=_int(env, "AGENT_POS_TIMEOUT_MS", 180000, minimum=1),
            operator=env.get("FISCAL_OPERATOR", "30"),
            password=env.get("FISCAL_PASSWORD", "0030"),
            till=env.get("FISCAL_TILL", "1"),
        ),
        redis=RedisSettings(
            host=env.get("REDIS_HOST", "localhost"),
            port=_int(env, "REDIS_PORT", 6379),
            job_queue=env.get("AGENT_JOB_QUEUE", "agent_jobs"),
        ),
    )


# =============================================================================
# Settings Singleton
# =============================================================================


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
