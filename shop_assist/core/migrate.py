"""Create the database schema.

Run once per environment before starting the API::

    shop-assist-migrate

``create_all`` only creates missing tables, so running it again is a no-op.
"""

import asyncio

from shop_assist.core.db import engine, init_db
from shop_assist.core.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def _run() -> None:
    try:
        await init_db()
    finally:
        await engine.dispose()


def main() -> None:
    configure_logging()
    logger.info("Creating database schema at %s", engine.url.render_as_string(hide_password=True))
    asyncio.run(_run())
    logger.info("Database schema is up to date.")


if __name__ == "__main__":
    main()
