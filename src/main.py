import logging
import os
import sys

from csv_io import write_accounts
from models import MalformedRecordError
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

DEFAULT_LOG_LEVEL = "WARNING"


def configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    configure_logging()

    engine = PaymentsEngine()
    try:
        engine.process_file(argv[0])
    except MalformedRecordError as e:
        logger.error(f"Malformed input, aborting: {e}")
        return 1
    except OSError as e:
        logger.error(f"Cannot read {argv[0]}: {e}")
        return 1

    write_accounts(engine.ledger.snapshots(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
