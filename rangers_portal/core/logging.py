import logging
import sys

from rangers_portal.core.config import get_settings


def configure_logging() -> None:
    """
    Configure logging for the whole portal.
    Called once when the FastAPI app is created; library users may call it too.
    """
    level = getattr(logging, get_settings().log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

