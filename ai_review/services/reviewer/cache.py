"""File content cache shared by the tool calls of one review."""

import asyncio
from collections import OrderedDict
from typing import Awaitable, Callable

from ai_review.core.exceptions import ToolExecutionError
from ai_review.core.logging import get_logger

logger = get_logger("reviewer.cache")

ContentGetter = Callable[[str], Awaitable[str]]

MAX_CACHE_ENTRIES = 1000


class ContentCache:
    """Memoized file contents with FIFO eviction.

    One lock guards the check/store steps and is released while the fetch
    is awaited. A path being fetched is tracked as an in-flight future, so
    concurrent requests for it share one external call.
    """

    def __init__(self, fetcher: ContentGetter, max_entries: int = MAX_CACHE_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._fetcher = fetcher
        self._max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._in_flight: dict[str, asyncio.Future[str]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    async def get_or_fetch(self, path: str) -> str:
        """Return the content of ``path``, fetching it on a miss.

        Raises:
            ToolExecutionError: If the external fetch fails
        """
        async with self._lock:
            if path in self._entries:
                return self._entries[path]
            pending = self._in_flight.get(path)
            if pending is None:
                pending = asyncio.get_running_loop().create_future()
                self._in_flight[path] = pending
                is_owner = True
            else:
                is_owner = False

        if not is_owner:
            return await asyncio.shield(pending)

        try:
            content = await self._fetcher(path)
        except asyncio.CancelledError:
            self._in_flight.pop(path, None)
            pending.cancel()
            raise
        except Exception as e:
            error = ToolExecutionError("get_file_content", f"Failed to fetch {path}: {e}")
            error.__cause__ = e
            async with self._lock:
                self._in_flight.pop(path, None)
            pending.set_exception(error)
            # Mark retrieved; waiters still receive the error.
            pending.exception()
            raise error from e

        async with self._lock:
            self._entries[path] = content
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted {evicted} from content cache")
            self._in_flight.pop(path, None)
        pending.set_result(content)
        return content
