# Path: artindex/indexing/worker.py
# Purpose: Run bulk record indexing on a background thread driven purely by messages.
# Layer: artindex/indexing.
# Details: Typed commands go in, typed events come out; the worker compiles its own filter and term table.

from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Iterator, Optional, Tuple, Union

from artindex.filtering.path_filter import PathFilter
from artindex.indexing.categorize import TermClassifier, insert_record
from artindex.models.domain import CatalogRegistry
from artindex.taxonomy import SCAFFOLDING_SEGMENTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexPathsCommand:
    """Index ``records`` (path, optional name, tags) with the supplied vocabularies."""

    records: Tuple[Tuple[str, Optional[str], Tuple[str, ...]], ...]
    term_table: Dict[str, Tuple[str, ...]]
    excluded_folders: Tuple[str, ...]
    excluded_filename_terms: Tuple[str, ...]
    scaffolding_segments: Tuple[str, ...] = tuple(sorted(SCAFFOLDING_SEGMENTS))
    source: str = ""


@dataclass(frozen=True)
class CancelCommand:
    pass


@dataclass(frozen=True)
class PingCommand:
    pass


@dataclass(frozen=True)
class ShutdownCommand:
    pass


Command = Union[IndexPathsCommand, CancelCommand, PingCommand, ShutdownCommand]


@dataclass(frozen=True)
class ProgressEvent:
    processed: int
    total: int
    images_found: int


@dataclass(frozen=True)
class CompleteEvent:
    registry: CatalogRegistry = field(compare=False)
    images_found: int = 0
    total: int = 0


@dataclass(frozen=True)
class ErrorEvent:
    message: str


@dataclass(frozen=True)
class CancelledEvent:
    processed: int = 0


@dataclass(frozen=True)
class PongEvent:
    pass


Event = Union[ProgressEvent, CompleteEvent, ErrorEvent, CancelledEvent, PongEvent]
TERMINAL_EVENTS = (CompleteEvent, ErrorEvent, CancelledEvent)


class IndexWorker:
    """Background indexer communicating through a command queue and an event queue."""

    def __init__(self, progress_every: int = 1000) -> None:
        self.progress_every = max(1, progress_every)
        self._commands: "queue.Queue[Command]" = queue.Queue()
        self._events: "queue.Queue[Event]" = queue.Queue()
        self._deferred: Deque[Command] = deque()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._thread = threading.Thread(target=self._loop, name="artindex-index-worker", daemon=True)
        self._thread.start()

    def send(self, command: Command) -> None:
        self._commands.put(command)

    def events(self, timeout: Optional[float] = None) -> Iterator[Event]:
        """
        Yield events until a terminal one (complete, error, cancelled) arrives.

        Raises TimeoutError when no event arrives within ``timeout`` seconds.
        """

        while True:
            try:
                event = self._events.get(timeout=timeout)
            except queue.Empty as exc:
                raise TimeoutError("Index worker produced no event in time.") from exc
            yield event
            if isinstance(event, TERMINAL_EVENTS):
                return

    def ping(self, timeout: float = 2.0) -> bool:
        """Return True when the worker answers a ping within ``timeout`` seconds."""

        if not self.is_running:
            return False
        self.send(PingCommand())
        try:
            return isinstance(self._events.get(timeout=timeout), PongEvent)
        except queue.Empty:
            return False

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self.send(ShutdownCommand())
        self._thread.join(timeout)
        self._thread = None

    def run_inline(self, command: Command, emit: Callable[[Event], None]) -> None:
        """Execute one command in the calling thread with the same event protocol."""

        self._dispatch(command, emit, lambda: False)

    # ------------------------------------------------------------------ worker side

    def _loop(self) -> None:
        while True:
            command = self._deferred.popleft() if self._deferred else self._commands.get()
            if isinstance(command, ShutdownCommand):
                return
            self._dispatch(command, self._events.put, self._poll_cancel)

    def _poll_cancel(self) -> bool:
        """Drain pending commands; True if a cancel arrived, other commands are kept for later."""

        cancelled = False
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return cancelled
            if isinstance(command, CancelCommand):
                cancelled = True
            else:
                self._deferred.append(command)

    def _dispatch(self, command: Command, emit: Callable[[Event], None], poll_cancel: Callable[[], bool]) -> None:
        try:
            if isinstance(command, IndexPathsCommand):
                self._index_paths(command, emit, poll_cancel)
            elif isinstance(command, PingCommand):
                emit(PongEvent())
            elif isinstance(command, CancelCommand):
                logger.debug("Cancel received while idle; ignored")
            else:
                emit(ErrorEvent(message=f"Unknown command: {type(command).__name__}"))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Index worker failed")
            emit(ErrorEvent(message=str(exc) or type(exc).__name__))

    def _index_paths(
        self,
        command: IndexPathsCommand,
        emit: Callable[[Event], None],
        poll_cancel: Callable[[], bool],
    ) -> None:
        if not isinstance(command.records, tuple):
            raise TypeError("records must be a tuple of (path, name, tags) triples")
        if not isinstance(command.term_table, dict):
            raise TypeError("term_table must be a mapping")

        path_filter = PathFilter(command.excluded_folders, command.excluded_filename_terms, command.scaffolding_segments)
        classifier = TermClassifier(command.term_table)
        registry = CatalogRegistry()
        total = len(command.records)
        found = 0
        emit(ProgressEvent(processed=0, total=total, images_found=0))

        for processed, (path, name, tags) in enumerate(command.records, start=1):
            if insert_record(registry, path, name, path_filter, classifier, tags, command.source):
                found += 1
            if processed % self.progress_every == 0 and processed < total:
                if poll_cancel():
                    emit(CancelledEvent(processed=processed))
                    return
                emit(ProgressEvent(processed=processed, total=total, images_found=found))

        emit(ProgressEvent(processed=total, total=total, images_found=found))
        emit(CompleteEvent(registry=registry, images_found=found, total=total))


__all__ = [
    "CancelCommand",
    "CancelledEvent",
    "Command",
    "CompleteEvent",
    "ErrorEvent",
    "Event",
    "IndexPathsCommand",
    "IndexWorker",
    "PingCommand",
    "PongEvent",
    "ProgressEvent",
    "ShutdownCommand",
]
