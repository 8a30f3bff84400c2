"""Run the Duet server: `python -m src.server`."""

import uvicorn

from src.config.settings import configure_logging, get_settings
from src.server.app import create_app


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
