"""
Configuration for the planning orchestrator.

Centralizes the tunables of the state machine and its session facade so
behavior can be adjusted without touching the graph wiring.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from tripflow.widgets.resolver import DEFAULT_MIN_MULTI_LEGS


@dataclass
class MachineConfig:
    """
    Configuration for the orchestrator.

    Attributes:
        recursion_limit: Maximum LangGraph steps per evaluation pass
        min_multi_legs: Legs a multi-city trip needs before search unlocks
        event_log_dir: Directory for per-session JSONL event logs (None disables)
        log_level: Root log level name used by the application entry point
        json_logs: Emit structured JSON logs instead of the plain format
        log_file: Optional file that receives a copy of the logs
    """

    # Graph execution limits
    recursion_limit: int = 25

    # Checklist rules
    min_multi_legs: int = DEFAULT_MIN_MULTI_LEGS

    # Observability
    event_log_dir: Optional[str] = None
    log_level: str = "INFO"
    json_logs: bool = False
    log_file: Optional[str] = None


# Default configuration instance
DEFAULT_CONFIG = MachineConfig()


def get_config(
    recursion_limit: Optional[int] = None,
    min_multi_legs: Optional[int] = None,
    event_log_dir: Optional[str] = None,
    log_level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    log_file: Optional[str] = None,
) -> MachineConfig:
    """
    Create a configuration with optional overrides.

    Returns:
        MachineConfig with specified overrides applied
    """
    return MachineConfig(
        recursion_limit=recursion_limit or DEFAULT_CONFIG.recursion_limit,
        min_multi_legs=min_multi_legs
        if min_multi_legs is not None
        else DEFAULT_CONFIG.min_multi_legs,
        event_log_dir=event_log_dir
        if event_log_dir is not None
        else DEFAULT_CONFIG.event_log_dir,
        log_level=log_level or DEFAULT_CONFIG.log_level,
        json_logs=json_logs if json_logs is not None else DEFAULT_CONFIG.json_logs,
        log_file=log_file or DEFAULT_CONFIG.log_file,
    )


def config_from_env() -> MachineConfig:
    """
    Build a configuration from TRIPFLOW_* environment variables.

    A .env file in the working directory is loaded first.
    """
    load_dotenv()

    min_legs = os.environ.get("TRIPFLOW_MIN_MULTI_LEGS")
    json_logs = os.environ.get("TRIPFLOW_JSON_LOGS")

    return get_config(
        min_multi_legs=int(min_legs) if min_legs else None,
        event_log_dir=os.environ.get("TRIPFLOW_EVENT_LOG_DIR") or None,
        log_level=os.environ.get("TRIPFLOW_LOG_LEVEL") or None,
        json_logs=json_logs.lower() in ("1", "true", "yes") if json_logs else None,
        log_file=os.environ.get("TRIPFLOW_LOG_FILE") or None,
    )
