"""
The pawndex daemon.

Owns two periodic timers multiplexed by one control loop:
- search: run the configured queries and mark every match for scraping
- scrape: hand every marked identifier to a fixed-size worker pool

Remote failures are logged and retried on the next tick. Store failures
abort the current tick only. Nothing escapes the loop; it stops when the
stop event is set.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from .database.store import PackageStore
from .errors import (
    InvalidIdentifierError,
    PawndexError,
    ScrapeCancelled,
    StoreError,
)
from .scraper import Scraper
from .searcher import DEFAULT_QUERIES, Searcher

logger = logging.getLogger(__name__)


@dataclass
class DaemonStats:
    """Counters describing what the daemon has done since it started."""
    searches: int = 0
    search_errors: int = 0
    discovered: int = 0
    scrapes: int = 0
    indexed: int = 0
    invalid: int = 0
    scrape_errors: int = 0
    store_errors: int = 0
    skipped_in_flight: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def incr(self, name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def to_dict(self) -> Dict[str, int]:
        with self._lock:
            return {
                'searches': self.searches,
                'search_errors': self.search_errors,
                'discovered': self.discovered,
                'scrapes': self.scrapes,
                'indexed': self.indexed,
                'invalid': self.invalid,
                'scrape_errors': self.scrape_errors,
                'store_errors': self.store_errors,
                'skipped_in_flight': self.skipped_in_flight,
            }


class Daemon:
    """
    Schedules searching and scraping.

    On shutdown, scrapes that were queued but not started are cancelled
    (their identifiers stay marked) and ``run`` waits for the running ones.
    Running scrapes see the stop event at their next remote call, so the
    wait is short.

    Example:
        stop = threading.Event()
        daemon = Daemon(searcher, scraper, store,
                        search_interval=3600, scrape_interval=60)
        signal.signal(signal.SIGTERM, lambda *_: stop.set())
        stats = daemon.run(stop)
    """

    def __init__(
        self,
        searcher: Searcher,
        scraper: Scraper,
        store: PackageStore,
        search_interval: float,
        scrape_interval: float,
        queries: Iterable[str] = DEFAULT_QUERIES,
        workers: int = 4,
        scrape_timeout: Optional[float] = 10.0,
        search_on_start: bool = False,
    ):
        if search_interval <= 0 or scrape_interval <= 0:
            raise ValueError("search and scrape intervals must be positive")
        if workers < 1:
            raise ValueError("at least one scrape worker is required")

        self.searcher = searcher
        self.scraper = scraper
        self.store = store
        self.search_interval = search_interval
        self.scrape_interval = scrape_interval
        self.queries = tuple(queries)
        self.workers = workers
        self.scrape_timeout = scrape_timeout
        self.search_on_start = search_on_start

        self.stats = DaemonStats()
        self._stop = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._in_flight: Dict[str, Future] = {}
        self._idle = threading.Condition()

    def run(self, stop: Optional[threading.Event] = None) -> DaemonStats:
        """
        Run the control loop until ``stop`` is set.

        Returns:
            The daemon's counters
        """
        if stop is not None:
            self._stop = stop

        start = time.monotonic()
        next_search = start if self.search_on_start else start + self.search_interval
        next_scrape = start + self.scrape_interval

        logger.info(
            f"Daemon started: search every {self.search_interval}s, "
            f"scrape every {self.scrape_interval}s with {self.workers} workers"
        )

        try:
            while not self._stop.is_set():
                now = time.monotonic()
                if now >= next_search:
                    self._tick("search", self.search_tick)
                    next_search = self._next_deadline(next_search, self.search_interval)
                if now >= next_scrape:
                    self._tick("scrape", self.scrape_tick)
                    next_scrape = self._next_deadline(next_scrape, self.scrape_interval)

                wait = min(next_search, next_scrape) - time.monotonic()
                if wait > 0:
                    self._stop.wait(wait)
        finally:
            self.shutdown()

        logger.info(f"Daemon stopped: {self.stats.to_dict()}")
        return self.stats

    @staticmethod
    def _next_deadline(previous: float, interval: float) -> float:
        """Next tick time; ticks missed while busy are dropped, not queued."""
        following = previous + interval
        now = time.monotonic()
        if following <= now:
            following = now + interval
        return following

    def _tick(self, name: str, tick) -> None:
        try:
            tick()
        except StoreError as e:
            self.stats.incr('store_errors')
            logger.error(f"Package store failed during {name} tick, retrying next tick: {e}")
        except Exception:
            logger.exception(f"Unexpected error during {name} tick")

    def search_tick(self) -> int:
        """
        Search and mark every result for scraping.

        Returns:
            Number of identifiers marked

        Raises:
            StoreError: marking failed; the rest of the tick is abandoned
        """
        result = self.searcher.search(self.queries, cancel=self._stop)
        self.stats.incr('searches')

        for query, error in result.errors.items():
            self.stats.incr('search_errors')
            logger.error(f"Search query '{query}' failed: {error}")

        marked = 0
        for identifier in sorted(result.identifiers):
            try:
                self.store.mark_for_scrape(identifier)
            except InvalidIdentifierError as e:
                logger.warning(f"Ignoring search result: {e}")
                continue
            marked += 1
        self.stats.incr('discovered', marked)

        logger.info(f"Search tick: {len(result.identifiers)} repositories found, {marked} marked")
        return marked

    def scrape_tick(self) -> int:
        """
        Dispatch every marked identifier that is not already being scraped.

        Returns:
            Number of scrapes submitted to the pool

        Raises:
            StoreError: the pending set could not be read
        """
        marked = self.store.get_marked()
        executor = self._pool()
        dispatched = 0

        with self._idle:
            for identifier in marked:
                if self._stop.is_set():
                    break
                if identifier in self._in_flight:
                    self.stats.incr('skipped_in_flight')
                    continue
                self._in_flight[identifier] = executor.submit(self._scrape_one, identifier)
                dispatched += 1

        if marked:
            logger.info(f"Scrape tick: {len(marked)} marked, {dispatched} dispatched")
        return dispatched

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="pawndex-scrape"
            )
        return self._executor

    def _scrape_one(self, identifier: str) -> None:
        try:
            self._scrape_and_commit(identifier)
        finally:
            with self._idle:
                self._in_flight.pop(identifier, None)
                if not self._in_flight:
                    self._idle.notify_all()

    def _scrape_and_commit(self, identifier: str) -> None:
        try:
            result = self.scraper.scrape(identifier, timeout=self.scrape_timeout, cancel=self._stop)
        except InvalidIdentifierError as e:
            # Resubmitting would fail the same way
            logger.error(f"Dropping {identifier!r} from the scrape queue: {e}")
            self._commit(identifier, self.store.unmark, identifier)
            return
        except ScrapeCancelled:
            logger.info(f"Scrape of {identifier} cancelled, it stays marked")
            return
        except PawndexError as e:
            self.stats.incr('scrape_errors')
            logger.error(f"Failed to scrape {identifier}, will retry: {e}")
            return
        except Exception:
            self.stats.incr('scrape_errors')
            logger.exception(f"Unexpected error scraping {identifier}")
            return

        self.stats.incr('scrapes')
        if result.is_cataloged:
            if self._commit(identifier, self.store.set, result.package):
                self.stats.incr('indexed')
                logger.debug(f"Indexed {identifier} as {result.classification.value}")
        else:
            if self._commit(identifier, self.store.unmark, identifier):
                self.stats.incr('invalid')
                logger.debug(f"{identifier} is not a Pawn package")

    def _commit(self, identifier: str, operation, argument) -> bool:
        try:
            operation(argument)
        except StoreError as e:
            self.stats.incr('store_errors')
            logger.error(f"Failed to store scrape result for {identifier}: {e}")
            return False
        return True

    def in_flight(self) -> Set[str]:
        """Identifiers currently queued or being scraped."""
        with self._idle:
            return set(self._in_flight)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no scrape is queued or running.

        Returns:
            False if the timeout expired first
        """
        with self._idle:
            return self._idle.wait_for(lambda: not self._in_flight, timeout=timeout)

    def shutdown(self) -> None:
        """Cancel queued scrapes and wait for running ones."""
        executor, self._executor = self._executor, None
        if executor is None:
            return
        executor.shutdown(wait=True, cancel_futures=True)
        with self._idle:
            for identifier, future in list(self._in_flight.items()):
                if future.cancelled():
                    del self._in_flight[identifier]
            self._idle.notify_all()
