import asyncio
import inspect
import sys
from pathlib import Path
from typing import Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from tracegeo.models import GeoResult, ProviderDescriptor  # noqa: E402
from tracegeo.providers.base import GeoProvider  # noqa: E402

FIXTURES = Path(__file__).resolve().parent / "fixtures"


def pytest_configure(config):
    """Register compatibility markers and defaults."""

    config.addinivalue_line("markers", "asyncio: mark a test as requiring the event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Execute ``async`` tests using a minimal event loop implementation."""

    testfunction = pyfuncitem.obj
    if not inspect.iscoroutinefunction(testfunction):
        return None

    signature = inspect.signature(testfunction)
    call_args = {
        name: value for name, value in pyfuncitem.funcargs.items() if name in signature.parameters
    }

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(testfunction(**call_args))
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()

    return True


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def fs(tmp_path, monkeypatch):
    """Lightweight stand-in for the pyfakefs fixture."""

    class SimpleFS:
        def __init__(self, base_path: Path):
            self.base_path = base_path

        def create_file(self, relative_path: str, contents: str | bytes = "") -> Path:
            target = self.base_path / relative_path
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(contents, bytes):
                target.write_bytes(contents)
            else:
                target.write_text(contents, encoding="utf-8")
            return target

    monkeypatch.chdir(tmp_path)
    return SimpleFS(tmp_path)


class StubProvider(GeoProvider):
    """In-memory provider returning a canned result or raising an error."""

    descriptor = ProviderDescriptor(name="stub", requires_network=False)

    def __init__(
        self,
        result: Optional[GeoResult] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        name: str = "stub",
    ):
        self.result = result
        self.error = error
        self.delay = delay
        self.stub_name = name
        self.calls = []
        self.cancelled = False

    @property
    def name(self) -> str:
        return self.stub_name

    @classmethod
    def from_settings(cls, settings):
        return cls()

    async def resolve(self, ip, timeout=None, token="", extended=False):
        self.calls.append({"ip": ip, "timeout": timeout, "token": token, "extended": extended})
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def stub_provider():
    return StubProvider


@pytest.fixture
def mocker():
    """Basic replacement for pytest-mock's mocker fixture."""

    from unittest.mock import AsyncMock, MagicMock, Mock, patch

    active_patchers = []

    class SimpleMocker:
        def patch(self, target, *args, **kwargs):
            patcher = patch(target, *args, **kwargs)
            active_patchers.append(patcher)
            return patcher.start()

        def stopall(self):
            while active_patchers:
                active_patchers.pop().stop()

    SimpleMocker.AsyncMock = AsyncMock  # type: ignore[attr-defined]
    SimpleMocker.MagicMock = MagicMock  # type: ignore[attr-defined]
    SimpleMocker.Mock = Mock  # type: ignore[attr-defined]

    helper = SimpleMocker()
    try:
        yield helper
    finally:
        helper.stopall()
