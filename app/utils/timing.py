"""
Operation timing helpers
"""

import functools
import logging
import time

logger = logging.getLogger(__name__)

def log_duration(name: str):
    """Log how long an async operation took, whether it succeeded or failed"""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception:
                logger.info(f"{name} failed after {(time.perf_counter() - start) * 1000:.1f} ms")
                raise
            logger.info(f"{name} took {(time.perf_counter() - start) * 1000:.1f} ms")
            return result
        return wrapper
    return decorator
