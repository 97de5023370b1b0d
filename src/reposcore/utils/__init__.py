"""Reposcore utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: External tool availability checks
- process: Subprocess contract and cancellation for external tools
"""

from reposcore.utils.logging import get_logger, setup_logging
from reposcore.utils.preflight import PreflightChecker, PreflightResult
from reposcore.utils.process import (
    CancellationToken,
    OperationCancelled,
    ProcessResult,
    run_tool,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "PreflightChecker",
    "PreflightResult",
    "CancellationToken",
    "OperationCancelled",
    "ProcessResult",
    "run_tool",
]
