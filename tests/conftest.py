"""
Shared test fixtures and configuration for pagesmith tests.

This module provides a throwaway site layout (pages, template, output), a
stand-in for the watchdog observer, and the slow-test switch.
"""

import os
import tempfile
from pathlib import Path
from typing import Callable, Generator, List, Optional

import pytest

from pagesmith.app_logger import NullAppLogger, set_default_logger
from pagesmith.config import SiteConfig

TEMPLATE = "<html><body>{{ post }}</body></html>"


def pytest_addoption(parser):
    """Add command line option to enable slow tests."""
    parser.addoption(
        "--enable-slow",
        action="store_true",
        default=False,
        help="Enable tests marked with @pytest.mark.slow (skipped by default)",
    )


def pytest_configure(config):
    """Register the custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: uses a real filesystem observer - skipped by default, use --enable-slow",
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless asked for."""
    enable_slow = config.getoption("--enable-slow") or os.getenv(
        "ENABLE_SLOW_TESTS", ""
    ).lower() in ("true", "1", "yes")

    if not enable_slow:
        skip_slow = pytest.mark.skip(
            reason="Use --enable-slow or set ENABLE_SLOW_TESTS=true to run slow tests"
        )
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def quiet_logger() -> Generator[None, None, None]:
    """Keep component logging out of test output."""
    set_default_logger(NullAppLogger())
    yield
    set_default_logger(None)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for testing.

    Yields:
        Path to the temporary directory
    """
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def site_config(temp_dir: Path) -> SiteConfig:
    """
    Create an empty site: pages/, out/ and a template with the marker.

    Returns:
        Configuration pointing at the temporary site
    """
    (temp_dir / "pages").mkdir()
    (temp_dir / "out").mkdir()
    (temp_dir / "template.html").write_text(TEMPLATE)
    return SiteConfig(
        pages_directory=str(temp_dir / "pages"),
        output_directory=str(temp_dir / "out"),
        template_file=str(temp_dir / "template.html"),
    )


@pytest.fixture
def sample_pages(site_config: SiteConfig) -> List[Path]:
    """
    Create source documents in the site, including a nested one.

    Returns:
        Paths of the created markdown documents
    """
    pages = Path(site_config.pages_directory)

    index = pages / "index.md"
    index.write_text("# Welcome\n\nHello there.\n")

    blog = pages / "blog"
    blog.mkdir()
    post = blog / "My First Post.md"
    post.write_text("# First post\n\nSome `code` here.\n")

    # Not a source document
    (pages / "notes.txt").write_text("plain text")

    return [index, post]


class FakeObserver:
    """Records directory registrations and delivers events synchronously."""

    def __init__(self):
        self.scheduled: List[tuple] = []
        self.handler = None
        self.started = False
        self.stopped = False
        self.unscheduled: List[tuple] = []
        self.fail_paths: set = set()
        # Called with the path once a watch exists, to simulate concurrent changes
        self.on_schedule: Optional[Callable[[str], None]] = None

    def schedule(self, handler, path, recursive=False):
        if path in self.fail_paths:
            raise FileNotFoundError(2, "No such file or directory", path)
        self.handler = handler
        watch = (path, recursive)
        self.scheduled.append(watch)
        if self.on_schedule is not None:
            self.on_schedule(path)
        return watch

    def unschedule(self, watch):
        self.scheduled.remove(watch)
        self.unscheduled.append(watch)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        pass

    def is_alive(self):
        return self.started and not self.stopped

    def emit(self, event):
        self.handler.dispatch(event)


@pytest.fixture
def fake_observer() -> FakeObserver:
    """Observer stand-in that never touches the OS notification APIs."""
    return FakeObserver()
