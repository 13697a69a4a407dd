"""
Process-wide logging setup.

Called once by the application lifespan (and by the CLI entry point)
before anything logs.  ``json`` writes one JSON object per line through
python-json-logger; ``text`` writes a human-readable line.  Extra fields
passed via ``extra=`` end up as JSON keys.
"""
import logging
import logging.config

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    level = level.upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"

    if fmt == "json":
        formatter = {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "fmt": _JSON_FORMAT,
            "rename_fields": {"asctime": "time", "levelname": "level"},
        }
    else:
        formatter = {"format": _TEXT_FORMAT}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "default",
                },
            },
            "root": {"level": level, "handlers": ["stdout"]},
            # uvicorn's own access log duplicates TimingMiddleware.
            "loggers": {"uvicorn.access": {"level": "WARNING"}},
        }
    )
