# logging_utils.py
"""
logging_utils.py

Central logging utilities for the Meal Catalog project.

Goal:
- One place to define:
  * Run / execution ID
  * Log line format
  * Module / function "purposes" in human language

Format (one line per log entry):
<RunId>|<Date>|<Time>|<Level>|<File:Line>|<Module.Func>|<ModulePurpose>|
<InvokingFunc>|<InvokingFuncPurpose>|<Detail>|<NextStep>|<Resolution>|<END>

Two ways to log:
  * logger = get_logger("reconciler"); logger.info("...", extra={...})
  * log_info("...", module_purpose=MODULE_PURPOSE, invoking_function="...")
Both end up in the same StructuredFormatter, so the output is uniform.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from typing import Dict, Optional, Union

LOG_RUN_ID: str = uuid.uuid4().hex[:8]
# Alias for compatibility with scripts that use RUN_ID
RUN_ID: str = LOG_RUN_ID

_FUNCTIONAL_LOGGER = "meal_catalog"


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that emits a single '|' separated line conforming
    to the log template.

    Format:
    <RunId>|<Date>|<Time>|<Level>|<File:Line>|<Module.Func>|<ModulePurpose>|
    <InvokingFunc>|<InvokingFuncPurpose>|<Detail>|<NextStep>|<Resolution>|<END>
    """

    # High-level purposes by module name
    MODULE_PURPOSES: Dict[str, str] = {
        "coercers": "Coerce raw meal fields into canonical numbers, meal types and titles",
        "registry": "Allocate run-unique meal identifiers and track reassignments",
        "flattener": "Expand meal records carrying options into independent records",
        "normalizer": "Turn one raw meal record into one canonical record",
        "violations": "Detect diet violations and decide the demotion target",
        "report": "Accumulate and render the reconciliation change report",
        "reconciler": "Walk the raw catalog and assemble the canonical catalog",
        "pipeline": "Load raw catalog JSON, reconcile, write catalog + audit report",
        "run": "Command line entrypoint for catalog reconciliation",
        "config": "Build reconciliation settings from environment variables",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        """Format log record into structured pipe-delimited format."""
        dt = datetime.datetime.fromtimestamp(record.created)
        date_str = dt.strftime("%Y-%m-%d")
        time_str = dt.strftime("%H:%M:%S")

        run_id = getattr(record, "run_id", RUN_ID)

        level = record.levelname
        code_location = f"{record.filename}:{record.lineno}"
        func_name = record.funcName
        module_name = record.module
        module_purpose = getattr(record, "module_purpose", "") or self.MODULE_PURPOSES.get(module_name, "")

        # Optional extra context supplied via logger calls
        invoking_func = getattr(record, "invoking_func", "")
        invoking_purpose = getattr(record, "invoking_purpose", "")
        next_step = getattr(record, "next_step", "")
        resolution = getattr(record, "resolution", "")

        detail = record.getMessage()
        line = (
            f"{run_id}|{date_str}|{time_str}|{level}|{code_location}|"
            f"{module_name}.{func_name}|{module_purpose}|"
            f"{invoking_func}|{invoking_purpose}|"
            f"{detail}|{next_step}|{resolution}|<END>"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def init_logging(level: Optional[Union[int, str]] = None) -> None:
    """
    Initialize root logger once with our StructuredFormatter.

    Call get_logger() from modules instead of calling logging.basicConfig()
    everywhere, so configuration stays central. A later call with an explicit
    level only adjusts the level.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO

    root = logging.getLogger()
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        if level is not None:
            root.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(logging.INFO if level is None else level)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger configured with structured formatting.

    Usage:
        logger = get_logger("reconciler")
        logger.info(
            "Something happened",
            extra={
                "invoking_func": "some_function",
                "invoking_purpose": "High-level purpose",
                "next_step": "What happens next",
                "resolution": "How to fix if error",
            },
        )
    """
    init_logging()
    return logging.getLogger(name)


def _log(
    level: int,
    message: str,
    *,
    module_purpose: str,
    invoking_function: str = "",
    invoking_purpose: str = "",
    next_step: str = "",
    resolution: str = "",
    exc: Optional[BaseException] = None,
) -> None:
    if exc is not None:
        message = f"{message} | EXC={exc!r}"
    # stacklevel=3 points File:Line at the caller of log_info/log_warning/log_error
    get_logger(_FUNCTIONAL_LOGGER).log(
        level,
        message,
        extra={
            "module_purpose": module_purpose,
            "invoking_func": invoking_function,
            "invoking_purpose": invoking_purpose,
            "next_step": next_step,
            "resolution": resolution,
        },
        stacklevel=3,
    )


def log_info(
    message: str,
    *,
    module_purpose: str,
    invoking_function: str = "",
    invoking_purpose: str = "",
    next_step: str = "",
    resolution: str = "",
) -> None:
    _log(
        logging.INFO,
        message,
        module_purpose=module_purpose,
        invoking_function=invoking_function,
        invoking_purpose=invoking_purpose,
        next_step=next_step,
        resolution=resolution,
    )


def log_warning(
    message: str,
    *,
    module_purpose: str,
    invoking_function: str = "",
    invoking_purpose: str = "",
    next_step: str = "",
    resolution: str = "",
) -> None:
    _log(
        logging.WARNING,
        message,
        module_purpose=module_purpose,
        invoking_function=invoking_function,
        invoking_purpose=invoking_purpose,
        next_step=next_step,
        resolution=resolution,
    )


def log_error(
    message: str,
    *,
    module_purpose: str,
    invoking_function: str = "",
    invoking_purpose: str = "",
    next_step: str = "",
    resolution: str = "",
    exc: Optional[BaseException] = None,
) -> None:
    _log(
        logging.ERROR,
        message,
        module_purpose=module_purpose,
        invoking_function=invoking_function,
        invoking_purpose=invoking_purpose,
        next_step=next_step,
        resolution=resolution,
        exc=exc,
    )
