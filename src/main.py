import sys
import logging
from typing import List, Optional

from pydantic import ValidationError

from config import get_settings
from errors import InputError
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    try:
        settings = get_settings()
    except ValidationError as e:
        configure_logging("WARNING")
        logger.error(f"Invalid configuration: {e}")
        return 1
    configure_logging(settings.log_level)

    if len(args) != 1:
        logger.error("Usage: payments-engine <input.csv>")
        return 1

    engine = PaymentsEngine(settings)
    try:
        engine.process_file(args[0])
    except InputError as e:
        logger.error(str(e))
        return 1

    print(engine.stats.summary(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
