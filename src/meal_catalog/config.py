"""
config.py

Purpose:
    Provide get_reconcile_config() which builds the reconciliation settings
    from environment variables (optionally loaded from a .env file).

Usage:
    from meal_catalog.config import get_reconcile_config
    config = get_reconcile_config()
"""
from __future__ import annotations

import os       # os module to read environment variables
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv      # Load environment variables from .env file

load_dotenv()  # loads .env

LAYOUT_BUCKETED = "bucketed"    # region -> diet -> mealType -> [records]
LAYOUT_FLAT = "flat"            # region -> diet -> [records]
LAYOUTS = (LAYOUT_BUCKETED, LAYOUT_FLAT)


@dataclass(frozen=True)
class ReconcileConfig:
    # Generated ids start here so they never collide with small numeric source ids
    id_seed: int = 100000

    # Report caps
    sample_limit: int = 10              # before/after record pairs
    violation_sample_limit: int = 20    # demotions per diet in __meta__
    unparseable_sample_limit: int = 50  # unparseable events in the audit report

    layout: str = LAYOUT_BUCKETED
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise ValueError(f"layout must be one of {LAYOUTS}, got {self.layout!r}")
        for name in ("sample_limit", "violation_sample_limit", "unparseable_sample_limit"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} must be an integer, got {raw!r}") from exc


# Function to create and return the reconcile settings. Env vars are read at call time.
def get_reconcile_config(env: Optional[Mapping[str, str]] = None) -> ReconcileConfig:
    """Create a ReconcileConfig using MEAL_CATALOG_* env vars."""
    env = os.environ if env is None else env
    return ReconcileConfig(
        id_seed=_env_int(env, "MEAL_CATALOG_ID_SEED", 100000),
        sample_limit=_env_int(env, "MEAL_CATALOG_SAMPLE_LIMIT", 10),
        violation_sample_limit=_env_int(env, "MEAL_CATALOG_VIOLATION_SAMPLE_LIMIT", 20),
        unparseable_sample_limit=_env_int(env, "MEAL_CATALOG_UNPARSEABLE_SAMPLE_LIMIT", 50),
        layout=(env.get("MEAL_CATALOG_LAYOUT") or LAYOUT_BUCKETED).strip().lower(),
        log_level=(env.get("MEAL_CATALOG_LOG_LEVEL") or "INFO").strip().upper(),
    )
