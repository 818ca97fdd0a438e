"""
Script to seed the demo menu, tables and the first admin account.
Installed as ``qrdine-seed``; also runnable via ``python3 -m qrdine_app.cli``.
"""

import logging
import sys

from qrdine_shared.config import load_config
from qrdine_shared.db import get_session, init_db, init_engine
from qrdine_shared.logging_config import configure_logging
from qrdine_shared.models import Base
from qrdine_shared.services.seed import load_seed_data

logger = logging.getLogger(__name__)


def main() -> int:
    config = load_config("qrdine-seed")
    configure_logging(config.app_name, config.log_level)
    try:
        logger.info("Initializing database connection...")
        init_engine(config)
        init_db(Base.metadata)

        logger.info("Starting seed...")
        with get_session() as session:
            load_seed_data(session, config)

        logger.info("Seed completed successfully!")
        return 0
    except Exception as e:
        logger.error(f"Error seeding database: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
