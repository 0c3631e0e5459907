import logging.config
import sys
from datetime import datetime, timezone
from typing import Any
import structlog

# Bibliotecas que logam demais em DEBUG (conexões HTTP, plugins de imagem)
_NOISY_LOGGERS = ("urllib3", "PIL")


#
# --- helpers --------------------------------------------------------------
#
def _add_timestamp(_, __, event: dict[str, Any]):
    event["timestamp"] = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    return event


def _renderers(json_logs: bool | None) -> list:
    if json_logs is None:
        json_logs = not sys.stderr.isatty()
    if json_logs:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    # o ConsoleRenderer formata a exception sozinho
    return [structlog.dev.ConsoleRenderer(colors=False)]


#
# --- public API -----------------------------------------------------------
#
def configure_logging(level: str = "INFO", json_logs: bool | None = None) -> None:
    """
    Logs estruturados em stderr; stdout fica livre para a saída da CLI.
    Em terminal interativo usa o renderer de console, senão JSON por linha.
    """
    level = level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"plain": {"format": "%(message)s"}},
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {
                "": {"handlers": ["stderr"], "level": level},
                **{name: {"level": "WARNING"} for name in _NOISY_LOGGERS},
            },
        }
    )

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.MODULE,
                 structlog.processors.CallsiteParameter.LINENO]
            ),
            _add_timestamp,
            structlog.processors.StackInfoRenderer(),
            *_renderers(json_logs),
        ],
    )
