"""Entry point: ``python -m src.pipeline``."""

from __future__ import annotations

import logging
import os
import sys

from ..core.errors import NewsletterError
from .newsletter_pipeline import run_pipeline

LOGGER = logging.getLogger("src.pipeline")


def main() -> int:
    logging.basicConfig(
        level=os.getenv("NEWSLETTER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        result = run_pipeline()
    except NewsletterError as exc:
        LOGGER.error("Newsletter run failed: %s", exc)
        return 1
    LOGGER.info("Newsletter for %s published (%s slots filled).", result.service_date, len(result.slots) - len(result.unmatched_slots))
    return 0


if __name__ == "__main__":
    sys.exit(main())
