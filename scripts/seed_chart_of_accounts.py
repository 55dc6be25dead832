import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import logging

from rental_core.db.engine import engine
from rental_core.ledger.accounts import seed_chart_of_accounts
from rental_core.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    """
    Insert the default chart of accounts. Safe to re-run: existing codes are skipped.
    """
    try:
        with engine.begin() as conn:
            inserted = seed_chart_of_accounts(conn)
        logger.info("Chart of accounts seeded, %s new account(s)", inserted)
    except Exception:
        logger.exception("Seeding chart of accounts failed")
        raise


if __name__ == "__main__":
    main()
