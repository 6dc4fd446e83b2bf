#!/usr/bin/env python3
"""Run the Worktrack API under uvicorn with the SERVER settings"""

import logging

import uvicorn

from worktrack.config.settings import Settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("worktrack.server")


def main():
    server = Settings.SERVER
    logger.info(
        f"Worktrack ({Settings.ENVIRONMENT}) on {server['host']}:{server['port']}, "
        f"database {Settings.DATABASE_URL}, mail backend {Settings.MAIL['backend']}"
    )
    if Settings.SCHEDULER['enabled']:
        logger.info(f"Delivery sweep every {Settings.SCHEDULER['sweep_interval_minutes']} minute(s)")

    uvicorn.run(
        "main:app",
        host=server['host'],
        port=server['port'],
        reload=server['reload'],
        log_level=server['log_level'],
    )


if __name__ == "__main__":
    main()
