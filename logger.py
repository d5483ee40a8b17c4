import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from loguru import logger

load_dotenv()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() in ("true", "1", "yes")


def setup_logger(log_level: str | None = None, log_file: str | None = None) -> None:
    """Configure loguru sinks from arguments or LOG_* environment variables."""
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")
    if log_file is None:
        log_file = os.getenv("LOG_FILE")
    error_log_file = os.getenv("ERROR_LOG_FILE")
    serialize = _env_flag("LOG_JSON")

    logger.remove()
    logger.configure(extra={"module": "haven"})

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[module]: <22}</cyan> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    file_format = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]: <22} | {name}:{function}:{line} - {message}"

    if serialize:
        logger.add(sys.stderr, level=log_level, serialize=True)
    else:
        logger.add(sys.stderr, format=console_format, level=log_level, colorize=True)

    for path, level, retention in ((log_file, log_level, "7 days"), (error_log_file, "ERROR", "14 days")):
        if not path:
            continue
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            format=file_format,
            level=level,
            rotation="10 MB",
            retention=retention,
            compression="zip",
        )


def get_logger(module_name: str | None = None):
    """Return the shared logger, optionally bound to a module name."""
    if module_name:
        return logger.bind(module=module_name)
    return logger


def format_log(message: str, **details: Any) -> str:
    """Render `message | key=value | ...` so log lines stay grep-friendly."""
    if not details:
        return message
    return f"{message} | " + " | ".join(f"{key}={value}" for key, value in details.items())


setup_logger()
