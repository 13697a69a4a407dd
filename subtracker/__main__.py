"""Run the API server: ``python -m subtracker``."""
import uvicorn

from subtracker.config import settings
from subtracker.logging_config import configure_logging


def main() -> None:
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    uvicorn.run(
        "subtracker.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        log_config=None,
        timeout_graceful_shutdown=30,
    )


if __name__ == "__main__":
    main()
