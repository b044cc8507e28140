from fastapi import Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

_search_limiter = RateLimiter(times=30, seconds=60)


async def search_rate_limit(request: Request, response: Response):
    # The limiter is only initialised when Redis is reachable at startup
    if FastAPILimiter.redis is None:
        return
    await _search_limiter(request, response)
