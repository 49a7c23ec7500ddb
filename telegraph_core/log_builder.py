from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
import copy
from dataclasses import dataclass
from datetime import datetime, tzinfo
import functools
import logging
import threading
from typing import Callable, Iterable, Sequence


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaggedLogEntry:
    tag: str
    data: str


@dataclass(frozen=True)
class LogStoreItem:
    timestamp: float
    entries: tuple[TaggedLogEntry, ...] = ()


@dataclass(frozen=True)
class LogItem:
    timestamp: float
    tag: str
    data: str


def build_log_list(store: Sequence[LogStoreItem], selected_tags: Iterable[str]) -> list[LogItem]:
    tags = set(selected_tags)
    out: list[LogItem] = []
    for item in store:
        for entry in item.entries:
            if entry.tag in tags:
                out.append(LogItem(timestamp=item.timestamp, tag=entry.tag, data=entry.data))
    return out


def format_hhmmss(timestamp_ms: float, tz: tzinfo | None = None) -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=tz)
    return f"{moment:%H:%M:%S}.{moment.microsecond // 1000:03d}"


class LogListBuilder:
    """Rebuilds the filtered log list off the caller's thread, last request wins.

    Every request works on a deep copy of the store. Issuing a new request cancels
    the previous one: its returned future is cancelled and its result, if the work
    already started, is never published.
    """

    def __init__(
        self,
        executor: Executor | None = None,
        on_result: Callable[[list[LogItem]], None] | None = None,
    ) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="telegraph-loglist")
        self._on_result = on_result
        self._lock = threading.Lock()
        self._generation = 0
        self._work: Future | None = None
        self._published: Future | None = None
        self._latest: list[LogItem] = []
        self._last_error: BaseException | None = None

    @property
    def latest(self) -> list[LogItem]:
        with self._lock:
            return list(self._latest)

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error

    def request(self, store: Sequence[LogStoreItem], selected_tags: Iterable[str]) -> Future:
        snapshot = copy.deepcopy(list(store))
        tags = tuple(selected_tags)
        published: Future = Future()
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._cancel_locked()
            work = self._executor.submit(build_log_list, snapshot, tags)
            self._work = work
            self._published = published
        work.add_done_callback(functools.partial(self._complete, generation=generation, published=published))
        return published

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            self._cancel_locked()

    def shutdown(self) -> None:
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=True, cancel_futures=True)

    def _cancel_locked(self) -> None:
        if self._work is not None:
            self._work.cancel()
        if self._published is not None:
            self._published.cancel()
        self._work = None
        self._published = None

    def _complete(self, work: Future, *, generation: int, published: Future) -> None:
        with self._lock:
            if generation != self._generation or published.cancelled():
                LOGGER.debug("discarding superseded log list build (generation %d)", generation)
                return
            self._work = None
            self._published = None
            if work.cancelled():
                published.cancel()
                return
            exc = work.exception()
            if exc is not None:
                self._last_error = exc
                LOGGER.warning("log list build failed: %s", exc)
                published.set_exception(exc)
                return
            items = work.result()
            self._latest = items
            published.set_result(items)
            callback = self._on_result
        if callback is not None:
            callback(list(items))
