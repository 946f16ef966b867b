"""Loguru setup shared by the HTTP app and the entry point."""

import logging
import sys
from pathlib import Path

from loguru import logger

from src.catalog_sync.runtime.config.config_data import ConfigData, LoggingConfig
from src.catalog_sync.runtime.context import get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "[<cyan>{extra[request_id]}</cyan>] | "
    "<magenta>{extra[provider]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# stdlib loggers whose records are dropped or capped before reaching loguru
_QUIET_LOGGERS = {"uvicorn.access": logging.CRITICAL, "uvicorn": logging.INFO}


class InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records (uvicorn, fastapi) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == "uvicorn.access":
            return

        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=2, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def _add_file_sink(cfg: LoggingConfig, verbose_errors: bool) -> None:
    path = Path(cfg.file)
    path.parent.mkdir(parents=True, exist_ok=True)
    as_json = cfg.format == "json"
    logger.add(
        str(path),
        level=cfg.level,
        format="{message}" if as_json else CONSOLE_FORMAT,
        serialize=as_json,
        rotation=f"{cfg.max_size_mb} MB",
        retention=cfg.backup_count,
        compression="zip",
        enqueue=True,
        backtrace=verbose_errors,
        diagnose=verbose_errors,
    )


def _route_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict):
        stdlog = logging.getLogger(name)
        stdlog.handlers = []
        stdlog.propagate = True
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def configure_logging(config: ConfigData | None = None) -> None:
    """Replace loguru's default sink with the configured console and file sinks.

    Every record carries ``request_id`` (set by the request middleware) and
    ``provider`` (the entity provider name) in its extras.
    """
    config = config or get_config()
    cfg = config.logging
    verbose_errors = config.app.environment != "production"

    logger.remove()
    logger.configure(
        extra={"request_id": "-", "provider": config.catalog.provider_name}
    )

    logger.add(
        sys.stderr,
        level=cfg.level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=verbose_errors,
        diagnose=verbose_errors,
    )
    if cfg.file:
        _add_file_sink(cfg, verbose_errors)

    _route_stdlib_logging()

    logger.bind(
        level=cfg.level, format=cfg.format, file=cfg.file, environment=config.app.environment
    ).info("Logging configured")
