"""
Logging setup for imgevolve sessions.

Console output plus a rotating, zip-compressed file sink, both through loguru.
Messages carry a ``[component]`` prefix, e.g. ``[TaskState] Improvement ...``.
"""

from datetime import datetime, timezone
import os
import sys

from loguru import logger

PLAIN_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"
)
COLOR_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<blue>{function}</blue>:<yellow>{line}</yellow> | "
    "<level>{message}</level>"
)


def setup_logger(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    enable_colors: bool = True,
    file_prefix: str = "session",
) -> str:
    """
    Replace loguru's handlers with a console sink and a timestamped file sink.

    Args:
        log_dir: Directory for log files, created if missing
        level: Minimum level for both sinks
        rotation: File rotation policy (e.g., "50 MB", "1 day")
        retention: How long rotated files are kept (e.g., "30 days")
        enable_colors: Colorize console output when stdout is a terminal
        file_prefix: Log file name prefix

    Returns:
        Path to the log file
    """
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"{file_prefix}_{stamp}.log")

    logger.remove()

    colorize = enable_colors and sys.stdout.isatty()
    logger.add(
        sys.stdout,
        level=level,
        format=COLOR_FORMAT if colorize else PLAIN_FORMAT,
        colorize=colorize,
        backtrace=True,
        diagnose=True,
    )
    logger.add(
        log_file,
        level=level,
        format=PLAIN_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        backtrace=True,
        diagnose=True,
    )

    logger.info("[logger] Logging to console and {}", log_file)
    logger.debug("[logger] Level={}, colors={}", level, colorize)
    return log_file
