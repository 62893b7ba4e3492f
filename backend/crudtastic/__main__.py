"""`python -m crudtastic`: serve the database named by DATABASE_URL."""

import logging
import sys

from crudtastic.exceptions import ConfigurationError, DatabaseError
from crudtastic.server import Server

logger = logging.getLogger("crudtastic")


def main() -> int:
    try:
        server = Server()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Configuration error: %s", e.message)
        logger.error("Fix the configuration and restart the server.")
        return 1
    try:
        server.listen()
    except DatabaseError as e:
        logger.error("%s | Context: %s", e.message, e.context)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
