"""
Worker Pool

Runs blocking work (SQLite transactions, file I/O) off the event loop.
Results come back as awaited futures, so callers resume on the loop
that awaited them.
"""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class WorkerPool:
    """Thread pool bridged to asyncio"""

    def __init__(self, max_workers: int = 2, thread_name_prefix: str = "weekend-worker"):
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )

    async def run(self, func: Callable, *args, **kwargs) -> Any:
        """Run func(*args, **kwargs) on a worker thread and await its result"""
        if self._executor is None:
            raise RuntimeError("Worker pool is shut down")

        loop = asyncio.get_running_loop()
        call = functools.partial(func, *args, **kwargs)
        return await loop.run_in_executor(self._executor, call)

    def shutdown(self, wait: bool = True):
        """Stop accepting work and release the threads"""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
            logger.info("Worker pool shut down")

    @property
    def is_running(self) -> bool:
        return self._executor is not None
