# workcheck/db_migrate.py
"""
Create DB tables and the default check template (safe to run repeatedly).
Usage:
  python -m workcheck.db_migrate
"""

import logging
from workcheck.db import init_db
from workcheck.store import init_default_template

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("Running DB migration / init")
    init_db()
    if init_default_template():
        logger.info("Default check template created.")
    logger.info("DB initialization complete.")
