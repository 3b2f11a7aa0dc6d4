import logging
import time

from fastapi import Request

from casalar.core.config import settings

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

logger = logging.getLogger('casalar.access')


def configure_logging(level: str = None):
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        datefmt='%Y-%m-%d %H:%M:%S',
    )


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info('%s %s -> %s (%.1fms)', request.method, request.url.path, response.status_code, duration_ms)
    if duration_ms > 1000:
        logger.warning('slow request: %s %s took %.1fms', request.method, request.url.path, duration_ms)
    return response
