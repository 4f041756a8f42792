"""
Shared infrastructure.

Modules:
- logging: Structured JSON logging and per-session event logs
- contracts: Snapshots handed to external services
"""

from tripflow.shared.logging.config import setup_logging, log_state_transition

__all__ = [
    "setup_logging",
    "log_state_transition",
]
