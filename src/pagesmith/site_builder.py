"""
Command layer: the run, generate and clean operations.

Each command returns a process exit code. Errors raised anywhere in the build
pipeline end up here, where they are reported as a single line and turned into
exit code 1.
"""

import signal
import threading
from typing import Any, Callable, Dict, Optional

from watchdog.observers import Observer

from pagesmith.app_logger import AppLogger, LogContext, get_default_logger
from pagesmith.config import SiteConfig
from pagesmith.file_finder import SourceFinder
from pagesmith.publisher import Publisher
from pagesmith.template import TemplateMarkerError
from pagesmith.watcher import WatchCoordinator


class SiteBuilder:
    """
    Orchestrates discovery, publishing and watching for one site.

    Components:
    -----------
    - SourceFinder: walks the pages tree and recognises documents
    - Publisher: renders documents into the template and writes pages
    - WatchCoordinator: created per command; owns the observer in watch mode
    """

    def __init__(
        self,
        config: Optional[SiteConfig] = None,
        publisher: Optional[Publisher] = None,
        observer_factory: Callable = Observer,
        logger: Optional[AppLogger] = None,
    ):
        """
        Initialise the builder.

        Args:
            config: Site layout, defaults to the standard layout
            publisher: Publisher to use, built from the config if omitted
            observer_factory: Creates the watchdog observer for ``run``
            logger: Optional AppLogger, defaults to the application logger
        """
        self.config = config or SiteConfig()
        self._logger = logger or get_default_logger()
        self.finder = SourceFinder(
            self.config.pages_directory, self.config.source_extension
        )
        self.publisher = publisher or Publisher(self.config, logger=self._logger)
        self._observer_factory = observer_factory
        self._coordinator: Optional[WatchCoordinator] = None
        self._previous_handlers: Dict[int, Any] = {}
        self._log_context = LogContext(component="SiteBuilder")

    @property
    def coordinator(self) -> Optional[WatchCoordinator]:
        """The coordinator of the command in progress, if any."""
        return self._coordinator

    def validate_setup(self) -> None:
        """
        Check that the pages directory is usable.

        Raises:
            FileNotFoundError: If the directory doesn't exist
            NotADirectoryError: If the path is not a directory
        """
        self.finder.validate_directory()

    def setup_signal_handlers(self) -> None:
        """Make SIGINT and SIGTERM end the watch loop instead of killing the process."""
        if threading.current_thread() is not threading.main_thread():
            return

        def signal_handler(signum, frame):
            print(f"\nReceived signal {signum}, shutting down...")
            if self._coordinator is not None:
                self._coordinator.request_stop()

        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, signal_handler)

    def restore_signal_handlers(self) -> None:
        """Put back the handlers that were active before setup_signal_handlers."""
        while self._previous_handlers:
            signum, handler = self._previous_handlers.popitem()
            # None means the handler was not installed from Python
            signal.signal(signum, signal.SIG_DFL if handler is None else handler)

    def clean(self) -> int:
        """Delete previously built pages."""
        return self._execute("clean", self._clean)

    def generate(self) -> int:
        """Build every page once."""
        return self._execute("generate", self._generate)

    def run(self) -> int:
        """Clean, build every page, then rebuild pages as their sources change."""
        return self._execute("run", self._run)

    def _clean(self) -> None:
        removed = self.publisher.clean_output_tree()
        self._logger.debug(
            "Removed previously built pages",
            context=LogContext(component=self._log_context.component, operation="clean"),
            removed=removed,
        )
        print("Done")

    def _generate(self) -> None:
        self.validate_setup()
        with WatchCoordinator(
            self.finder, self.publisher, logger=self._logger
        ) as coordinator:
            self._coordinator = coordinator
            published = coordinator.initialize()
        print(f"Built {published} page{'s' if published != 1 else ''}")

    def _run(self) -> None:
        self.publisher.clean_output_tree()
        self.validate_setup()
        with WatchCoordinator(
            self.finder, self.publisher, self._observer_factory(), logger=self._logger
        ) as coordinator:
            self._coordinator = coordinator
            self.setup_signal_handlers()
            try:
                coordinator.initialize()
                coordinator.start()
                print(
                    f"Watching {self.config.pages_directory} for changes. "
                    "Press Ctrl+C to stop."
                )
                coordinator.wait()
            finally:
                self.restore_signal_handlers()

    def _execute(self, command: str, action: Callable[[], None]) -> int:
        try:
            action()
            return 0
        except TemplateMarkerError as e:
            print(f"Template error: {e}")
        except ValueError as e:
            print(f"Build error: {e}")
        except OSError as e:
            print(f"File error: {e}")
        finally:
            self._coordinator = None

        self._logger.debug(
            "Command failed",
            context=LogContext(component=self._log_context.component, operation=command),
        )
        return 1
