"""
Retry policy for transient database failures.

Wraps write paths that run outside a request (background fan-out) so a
dropped connection does not lose a merge or a final status write.

Dependencies: tenacity, sqlalchemy
System role: Database write resilience
"""

import logging

from sqlalchemy.exc import InterfaceError, OperationalError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = logging.getLogger(__name__)

DB_RETRY_ATTEMPTS = 3


def _log_retry(retry_state) -> None:
    logger.warning(
        f"{__name__}:db_retry - Retry {retry_state.attempt_number}/{DB_RETRY_ATTEMPTS} "
        f"after {type(retry_state.outcome.exception()).__name__}"
    )


db_retry = retry(
    retry=retry_if_exception_type((OperationalError, InterfaceError)),
    stop=stop_after_attempt(DB_RETRY_ATTEMPTS),
    wait=wait_exponential_jitter(initial=0.2, max=3, jitter=0.5),
    before_sleep=_log_retry,
    reraise=True,
)
