import logging
import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s | %(message)s"


def setup_logger(logger_name: str) -> logging.Logger:
    """Set up a console logger for a module.

    Parameters
    ----------
    logger_name : str
        The name for the logger, __name__ is idiomatic

    Returns
    -------
    logging.Logger
        the configured logger
    """
    lgr = logging.getLogger(name=logger_name)
    lgr.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    # avoid duplicate handlers when a module is re-imported
    for _h in list(lgr.handlers):
        lgr.removeHandler(_h)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FMT))
    lgr.addHandler(console_handler)
    return lgr
