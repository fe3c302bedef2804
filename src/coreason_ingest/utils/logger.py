# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_ingest

import sys
from pathlib import Path

from loguru import logger


def configure_logging(level: str = "INFO", log_dir: str | Path | None = "logs") -> None:
    """Install the process-wide log sinks.

    Always logs to stderr. When ``log_dir`` is given, also writes serialized
    (JSON) records to a rotating ``app.log`` in that directory.

    Args:
        level: Minimum level for every sink.
        log_dir: Directory for the JSON log file, or None to skip it.
    """
    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_dir is not None:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            path / "app.log",
            level=level,
            rotation="10 MB",
            retention=5,
            serialize=True,
            enqueue=True,
        )
