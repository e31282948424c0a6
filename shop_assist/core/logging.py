import logging

from shop_assist.core.config import get_settings


def configure_logging() -> None:
    settings = get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    if settings.app_env in {"dev", "development", "test"}:
        level = min(level, logging.DEBUG)

    # Leave handlers alone when the server (or pytest) has already installed some.
    if not logging.root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    logging.getLogger("shop_assist").setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
