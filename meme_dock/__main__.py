"""Entry point for python -m meme_dock."""

import uvicorn

from .app import app
from .config import settings


def main() -> None:
    """Run the API server."""
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
