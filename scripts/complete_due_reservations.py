import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import logging
from datetime import date

from rental_core.db.engine import engine
from rental_core.logging_config import setup_logging
from rental_core.services.reservations import complete_due_reservations

setup_logging()
logger = logging.getLogger(__name__)


def main() -> None:
    """
    Mark confirmed reservations completed once their check-out day is reached.
    """
    parser = argparse.ArgumentParser(description=main.__doc__)
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Business date in YYYY-MM-DD (defaults to today, UTC)",
    )
    args = parser.parse_args()

    try:
        completed = complete_due_reservations(engine, as_of=args.as_of)
        logger.info("Completed %s reservation(s): %s", len(completed), completed)
    except Exception:
        logger.exception("Completing due reservations failed")
        raise


if __name__ == "__main__":
    main()
