import logging
import sys

def setup_logging(level: str = "INFO"):
    """
    Configure the application's root logger.

    Sets the log level (INFO by default; unknown names fall back to INFO), uses the format "timestamp - logger name - level - message" for records, and attaches a StreamHandler that writes logs to stdout.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )
