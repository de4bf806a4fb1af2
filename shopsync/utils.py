# shopsync/utils.py
"""Shared utilities: logger setup and the retry decorator used by the fetcher."""
import os
import logging
import time
from functools import wraps
from dotenv import load_dotenv

load_dotenv()

def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("catalog-sync")

def retry(exceptions, tries=3, delay=1, backoff=2, max_delay=30, logger=logger):
    """Retry the wrapped call on `exceptions` with exponential backoff.

    The wait doubles (by `backoff`) after each failure but never exceeds
    `max_delay`. The last attempt's error propagates unchanged.
    """
    def deco_retry(f):
        name = getattr(f, "__name__", repr(f))

        @wraps(f)
        def f_retry(*args, **kwargs):
            mdelay = delay
            for attempt in range(1, tries):
                try:
                    return f(*args, **kwargs)
                except exceptions as e:
                    logger.warning("%s failed (attempt %d/%d): %s; retrying in %s sec",
                                   name, attempt, tries, e, mdelay)
                    time.sleep(mdelay)
                    mdelay = min(mdelay * backoff, max_delay)
            return f(*args, **kwargs)
        return f_retry
    return deco_retry
