"""Environment configuration; loads .env locally via python-dotenv."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv

from carton_planner.models import CalculationOptions

# Does not override variables already set in the environment
load_dotenv()

ENV_INNER_BUFFER = "CARTON_INNER_BUFFER"
ENV_MASTER_BUFFER = "CARTON_MASTER_BUFFER"
ENV_BUFFER_UNIT = "CARTON_BUFFER_UNIT"
ENV_INNER_MATERIAL = "CARTON_INNER_MATERIAL"
ENV_LOG_LEVEL = "CARTON_LOG_LEVEL"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def log_level() -> str:
    return os.getenv(ENV_LOG_LEVEL, "INFO").strip().upper() or "INFO"


def default_options(**overrides: Any) -> CalculationOptions:
    """
    Build CalculationOptions from the environment.

    Keyword overrides whose value is None are ignored, so callers can pass
    optional CLI flags straight through.
    """
    unit = os.getenv(ENV_BUFFER_UNIT, "inch")
    values: dict[str, Any] = {
        "inner_buffer": _env_float(ENV_INNER_BUFFER, 0.0),
        "inner_buffer_unit": unit,
        "master_buffer": _env_float(ENV_MASTER_BUFFER, 0.0),
        "master_buffer_unit": unit,
        "inner_material": os.getenv(ENV_INNER_MATERIAL, "Box"),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return CalculationOptions(**values)
