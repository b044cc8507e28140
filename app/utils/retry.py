from functools import wraps
from typing import Tuple, Type
from structlog import get_logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = get_logger()

def retry_api(
    tries: int = 3,
    delay: float = 1,
    backoff: float = 2,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
):
    """Retry an async call with exponential backoff.

    Only exceptions in ``retry_on`` are retried; anything else, and the last
    failure once ``tries`` is exhausted, propagates unchanged.
    """
    def decorator(func):
        @wraps(func)
        @retry(
            stop=stop_after_attempt(max(tries, 1)),
            wait=wait_exponential(multiplier=delay, exp_base=backoff),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        )
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except retry_on as e:
                logger.warning("Retry attempt", func=func.__name__, error=str(e))
                raise
        return wrapper
    return decorator
