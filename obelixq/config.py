"""Configuration for the ObelixQ booking core.

Scheduling constants live here as plain module attributes; runtime settings
(port, log level, simulated latency...) come from the environment via
``load_settings()``.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Slot generation is fixed at half-hour boundaries: HH:00 and HH:30
SLOT_DURATION_MINUTES = 30
SLOT_MINUTES = (0, 30)

# Afternoon starts at 12:00 for the time-of-day filter
MORNING_CUTOFF_HOUR = 12

# Max alternatives returned with a 409 on reservation
MAX_ALTERNATIVE_SLOTS = 5

# API Configuration
MOCK_API_PORT = 5000
MOCK_API_BASE_URL = f"http://localhost:{MOCK_API_PORT}"

DEFAULT_SEED_FILE = Path(__file__).parent.parent / "data" / "seed_catalog.json"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API process."""
    api_host: str = "0.0.0.0"
    api_port: int = MOCK_API_PORT
    log_level: str = "INFO"

    # Artificial latency applied by the orchestration layer (emulates the
    # network round trip of the mobile app's mock repositories)
    simulated_latency_ms: int = 0

    # Reject illegal status transitions (e.g. completed -> pending)
    strict_transitions: bool = True

    seed_file: Optional[str] = str(DEFAULT_SEED_FILE)


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """
    Load settings from environment variables (and an optional .env file).

    Args:
        dotenv_path: Explicit .env path, mainly for tests

    Returns:
        Settings instance

    Raises:
        ValueError: If a variable holds an invalid value
    """
    load_dotenv(dotenv_path=dotenv_path, override=False)

    api_port = int(os.getenv("OBELIXQ_API_PORT", str(MOCK_API_PORT)))
    if not 0 < api_port < 65536:
        raise ValueError(f"OBELIXQ_API_PORT out of range: {api_port}")

    log_level = os.getenv("OBELIXQ_LOG_LEVEL", "INFO").upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ValueError(f"Invalid OBELIXQ_LOG_LEVEL: {log_level}")

    simulated_latency_ms = int(os.getenv("OBELIXQ_SIMULATED_LATENCY_MS", "0"))
    if simulated_latency_ms < 0:
        raise ValueError("OBELIXQ_SIMULATED_LATENCY_MS must be >= 0")

    seed_file = os.getenv("OBELIXQ_SEED_FILE", str(DEFAULT_SEED_FILE)) or None

    return Settings(
        api_host=os.getenv("OBELIXQ_API_HOST", "0.0.0.0"),
        api_port=api_port,
        log_level=log_level,
        simulated_latency_ms=simulated_latency_ms,
        strict_transitions=_parse_bool(os.getenv("OBELIXQ_STRICT_TRANSITIONS", "1")),
        seed_file=seed_file,
    )
