"""Runs the ShadowLink development server: ``python -m shadowlink``."""

import os

from . import ShadowLink
from .config import configure_logging, get_settings


def main() -> None:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    app = ShadowLink(settings=settings)
    app.run(
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8050")),
        debug=settings.LOG_LEVEL == "DEBUG",
    )


if __name__ == "__main__":
    main()
