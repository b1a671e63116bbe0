from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
PACKAGE_LOGGER = "equality_insights"


def configure_logging(level: str = "INFO", *, package_level: str | None = None) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    if package_level:
        logging.getLogger(PACKAGE_LOGGER).setLevel(package_level.upper())
