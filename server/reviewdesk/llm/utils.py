import functools
import logging
import random
import time
from typing import Any, Callable, Tuple, Type

import openai

logger = logging.getLogger(__name__)

# Errors worth another attempt. Auth and bad-request errors are not retried.
TRANSIENT_LLM_ERRORS: Tuple[Type[BaseException], ...] = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
    ValueError,
)


def _backoff_seconds(delay: float, attempt: int) -> float:
    # Exponential, with jitter so parallel workers don't retry in lockstep
    return delay * (2**attempt) * (0.5 + 0.5 * random.random())


def retry_llm_operation(max_retries: int = 3, delay: float = 1.0):
    """
    Retry a model call on transient provider errors or an unusable reply.

    Args:
        max_retries: Attempts after the first one (default: 3)
        delay: Base delay in seconds, doubled on every attempt (default: 1.0)
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except TRANSIENT_LLM_ERRORS as e:
                    if attempt >= max_retries:
                        logger.error(
                            f"{func.__name__} still failing after {max_retries} retries: {e}"
                        )
                        raise
                    wait = _backoff_seconds(delay, attempt)
                    attempt += 1
                    logger.debug(
                        f"{func.__name__} attempt {attempt}/{max_retries} failed ({e}); "
                        f"sleeping {wait:.2f}s"
                    )
                    time.sleep(wait)

        return wrapper

    return decorator
