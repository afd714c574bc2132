"""Entry point for standalone backend process."""

import uvicorn

from stackmod_manager.config import settings
from stackmod_manager.main import app


def main() -> None:
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
