"""
Centralized logging configuration.

Configure once at the entry point (CLI or host application), not per module.
"""

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog

from schema_weaver.core.config_loader import LoggingConfigDefaults, load_logging_config


def configure_logging(
    level: int | str | None = None,
    config_path: Path | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure Python logging and structlog for the entire application.

    Truly idempotent: safe to call multiple times without side effects.
    Checks if root logger already has handlers before configuring.

    Args:
        level: Root level override; defaults to root_level from logging config
        config_path: Optional logging YAML path (defaults to config/logging.yaml)
        stream: Handler stream (default: stdout)
    """
    root_logger = logging.getLogger()

    # Only configure if no handlers exist (truly idempotent)
    if root_logger.handlers:
        return

    try:
        config = load_logging_config(config_path)
    except ValueError:
        if config_path is not None:
            raise
        # Installed without config/ next to src/: built-in defaults
        config = LoggingConfigDefaults().to_dict()

    logging.basicConfig(
        level=level if level is not None else config["root_level"],
        format=config["format"],
        handlers=[logging.StreamHandler(stream or sys.stdout)],
    )

    # structlog events go through stdlib handlers so module levels apply
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    for name, module_level in config["module_levels"].items():
        logging.getLogger(name).setLevel(module_level)

    # Reduce noise
    for name, noisy_level in config["reduce_noise"].items():
        logging.getLogger(name).setLevel(noisy_level)
