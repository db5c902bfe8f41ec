from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from protocol import Repository, SessionState

logger = logging.getLogger(__name__)

FetchRepositories = Callable[[], Awaitable[List[Repository]]]


class RepositoryListCache:
    """Cached repository list refreshed by flags and version counters, not timers.

    ``invalidate`` and ``refresh`` only set flags, so calling them any number
    of times before the next ``sync`` costs a single fetch.
    """

    def __init__(self, fetch: FetchRepositories) -> None:
        self._fetch = fetch
        self._items: Optional[List[Repository]] = None
        self._stale = True
        self._refresh_requested = False
        self._seen_version = 0
        self.fetch_count = 0

    @property
    def items(self) -> List[Repository]:
        return list(self._items or [])

    @property
    def needs_sync(self) -> bool:
        return self._items is None or self._stale or self._refresh_requested

    def invalidate(self) -> None:
        self._stale = True

    def refresh(self) -> None:
        self._refresh_requested = True

    def on_state_change(self, snapshot: SessionState) -> None:
        """Consume the session's refresh counter; each new version requests one refresh."""
        if snapshot.refresh_version > self._seen_version:
            self._seen_version = snapshot.refresh_version
            self.invalidate()
            self.refresh()

    async def sync(self, force: bool = False) -> List[Repository]:
        if not force and not self.needs_sync:
            return self.items
        items = await self._fetch()
        self._items = list(items)
        self._stale = False
        self._refresh_requested = False
        self.fetch_count += 1
        logger.debug("repository list synced: %d repositories", len(self._items))
        return self.items

    async def wait_for(
        self,
        predicate: Callable[[List[Repository]], bool],
        attempts: int = 5,
        interval_seconds: float = 1.0,
    ) -> bool:
        """Poll until the list satisfies ``predicate``, at most ``attempts`` fetches.

        Covers the delay between creating a repository and the listing API
        returning it.
        """
        for attempt in range(1, attempts + 1):
            items = await self.sync(force=True)
            if predicate(items):
                return True
            if attempt < attempts:
                await asyncio.sleep(interval_seconds)
        logger.warning("repository list did not converge after %d attempts", attempts)
        return False
