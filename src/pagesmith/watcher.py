"""
Watch coordination: initial build, directory registration and rebuild on change.

The coordinator walks the source tree once, registering every directory with
a watchdog observer (one non-recursive watch per directory) and publishing
every source document it finds. While watching, watchdog's threads only
enqueue; a single worker thread drains the queue and calls the publisher, so
no two publishes ever run at the same time.

Notification problems seen by the worker (a watched directory disappearing,
a new directory that can't be registered) are recorded as ``WatchError``s and
logged; watching continues. Anything else raised while reacting to a change
is fatal: the coordinator terminates and ``wait()`` re-raises the error in the
calling thread.
"""

import os
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Literal, Optional, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)

from pagesmith.app_logger import AppLogger, LogContext, get_default_logger
from pagesmith.file_finder import SourceFinder

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver, ObservedWatch

    from pagesmith.publisher import Publisher


ChangeKind = Literal["created", "written", "removed", "renamed"]

_EVENT_KINDS = {
    EVENT_TYPE_CREATED: "created",
    EVENT_TYPE_MODIFIED: "written",
    EVENT_TYPE_DELETED: "removed",
    EVENT_TYPE_MOVED: "renamed",
}


class WatchState(Enum):
    """Lifecycle of a watch coordinator."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    WATCHING = "watching"
    REACTING = "reacting"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class ChangeEvent:
    """
    A filesystem change reported by the observer.

    Attributes:
        path: Affected path; for renames, the new location
        kind: What happened to the path
        is_directory: Whether the path is a directory
    """

    path: str
    kind: ChangeKind
    is_directory: bool = False


@dataclass(frozen=True)
class WatchError:
    """A non-fatal notification problem."""

    message: str
    path: Optional[str] = None


_STOP = object()


class SourceEventHandler(FileSystemEventHandler):
    """Translates watchdog events into ChangeEvents on the coordinator's queue."""

    def __init__(self, events: "queue.Queue"):
        super().__init__()
        self._events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        kind = _EVENT_KINDS.get(event.event_type)
        if kind is None:
            # opened/closed notifications carry no content change
            return
        path = event.src_path
        if kind == "renamed":
            if event.dest_path:
                path = event.dest_path
            else:
                # moved somewhere that isn't watched
                kind = "removed"
        self._events.put(
            ChangeEvent(path=os.fsdecode(path), kind=kind, is_directory=event.is_directory)
        )


class WatchCoordinator:
    """
    Keeps the output tree in step with the source tree.

    Use as a context manager so the observer and the worker are released on
    every exit path::

        with WatchCoordinator(finder, publisher, Observer()) as coordinator:
            coordinator.initialize()
            coordinator.start()
            coordinator.wait()

    Without an observer the coordinator only performs the initial build.
    """

    def __init__(
        self,
        finder: SourceFinder,
        publisher: "Publisher",
        observer: Optional["BaseObserver"] = None,
        logger: Optional[AppLogger] = None,
    ):
        """
        Initialise the coordinator.

        Args:
            finder: Source tree walker and document classifier
            publisher: Publisher used for every rebuild
            observer: watchdog observer to register directories with, or None
                for a one-shot build
            logger: Optional AppLogger, defaults to the application logger
        """
        self._finder = finder
        self._publisher = publisher
        self._observer = observer
        self._logger = logger or get_default_logger()
        self._log_context = LogContext(component="WatchCoordinator")

        self._queue: "queue.Queue[Union[ChangeEvent, object]]" = queue.Queue()
        self._handler = SourceEventHandler(self._queue)
        self._watched: Dict[str, "ObservedWatch"] = {}
        self._watched_lock = threading.Lock()

        self._state = WatchState.IDLE
        self._worker: Optional[threading.Thread] = None
        self._terminated = threading.Event()
        self._fatal_error: Optional[BaseException] = None
        self._errors: List[WatchError] = []

    def __enter__(self) -> "WatchCoordinator":
        if self._observer is not None:
            self._observer.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def handler(self) -> SourceEventHandler:
        """The event handler registered for every watched directory."""
        return self._handler

    @property
    def watched_directories(self) -> FrozenSet[str]:
        """Snapshot of the directories registered for notification."""
        with self._watched_lock:
            return frozenset(self._watched)

    @property
    def errors(self) -> List[WatchError]:
        """Notification errors seen so far."""
        return list(self._errors)

    @property
    def fatal_error(self) -> Optional[BaseException]:
        return self._fatal_error

    def initialize(self) -> int:
        """
        Walk the source tree, registering directories and publishing documents.

        Returns:
            Number of documents published

        Raises:
            OSError: If the tree can't be walked, a directory can't be
                registered, or a document can't be published
            TemplateMarkerError: If the template has no marker
        """
        self._state = WatchState.INITIALIZING
        self._logger.info(
            "Building source tree",
            context=LogContext(
                component=self._log_context.component,
                operation="initialize",
                path=self._finder.base_directory,
            ),
        )
        try:
            return self._build_tree(self._finder.base_directory)
        except BaseException:
            self._state = WatchState.TERMINATED
            raise

    def _build_tree(self, directory: str) -> int:
        # Register before listing so nothing created in between is missed
        self._register_directory(directory)
        documents, subdirectories = self._finder.list_directory(directory)

        published = 0
        for document in documents:
            self._publisher.publish(document)
            published += 1
        for subdirectory in subdirectories:
            published += self._build_tree(subdirectory)
        return published

    def _register_directory(self, directory: str) -> None:
        if self._observer is None:
            return
        with self._watched_lock:
            if directory in self._watched:
                return
            self._watched[directory] = self._observer.schedule(
                self._handler, directory, recursive=False
            )
        self._logger.debug(
            "Watching directory",
            context=LogContext(
                component=self._log_context.component,
                operation="register",
                path=directory,
            ),
        )

    def start(self) -> None:
        """
        Start the rebuild worker.

        Raises:
            RuntimeError: If there is no observer to receive events from
        """
        if self._observer is None:
            raise RuntimeError("Cannot watch without an observer")
        if self._worker is not None:
            return

        self._state = WatchState.WATCHING
        self._worker = threading.Thread(
            target=self._drain, name="pagesmith-rebuild", daemon=True
        )
        self._worker.start()

    def _drain(self) -> None:
        """Worker thread: handle queued items one at a time until stopped."""
        while True:
            item = self._queue.get()
            if item is _STOP:
                return

            self._state = WatchState.REACTING
            try:
                self._react(item)
            except Exception as e:
                self._fatal_error = e
                self._logger.critical(
                    "Rebuild failed, stopping",
                    context=LogContext(
                        component=self._log_context.component,
                        operation="react",
                        path=item.path,
                    ),
                    error=str(e),
                )
                self._state = WatchState.TERMINATED
                self._terminated.set()
                return
            self._state = WatchState.WATCHING

    def _react(self, change: ChangeEvent) -> None:
        if change.is_directory:
            if change.kind in ("created", "renamed"):
                self._adopt_directory(change.path)
            elif change.kind == "removed" and self._forget_directory(change.path):
                self._report_error(
                    WatchError("Watched directory was removed", change.path)
                )
            return

        if change.kind == "removed" or not self._finder.is_source_document(change.path):
            self._logger.debug(
                "Ignoring change",
                context=LogContext(
                    component=self._log_context.component,
                    operation="react",
                    path=change.path,
                ),
                kind=change.kind,
            )
            return

        self._publisher.publish(change.path)

    def _forget_directory(self, directory: str) -> bool:
        """Drop the watch on a removed directory. False if it wasn't watched."""
        with self._watched_lock:
            watch = self._watched.pop(directory, None)
        if watch is None:
            return False
        # The emitter stops itself, but the observer keeps it until unscheduled
        self._observer.unschedule(watch)
        return True

    def _adopt_directory(self, directory: str) -> None:
        """Register a directory that appeared while watching, and build what it holds."""
        try:
            self._build_tree(directory)
        except FileNotFoundError as e:
            # Gone again before it could be walked
            self._forget_directory(directory)
            self._report_error(
                WatchError(f"Could not watch new directory: {e}", directory)
            )

    def _report_error(self, error: WatchError) -> None:
        self._errors.append(error)
        self._logger.error(
            f"ERROR {error.message}",
            context=LogContext(
                component=self._log_context.component,
                operation="watch",
                path=error.path,
            ),
        )

    def request_stop(self) -> None:
        """Ask a blocked ``wait()`` to return. Safe to call from a signal handler."""
        self._terminated.set()

    def wait(self, poll_interval: float = 0.5) -> None:
        """
        Block until the coordinator terminates.

        Raises:
            Exception: The error that terminated the worker, if any
        """
        while not self._terminated.wait(poll_interval):
            pass
        if self._fatal_error is not None:
            raise self._fatal_error

    def stop(self) -> None:
        """Stop the observer and the worker, after queued changes are handled."""
        if self._observer is not None and self._observer.is_alive():
            self._observer.stop()
            self._observer.join()

        if self._worker is not None:
            self._queue.put(_STOP)
            self._worker.join()
            self._worker = None

        self._state = WatchState.TERMINATED
        self._terminated.set()
