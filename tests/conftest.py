import asyncio
import inspect
import os
import sys
from pathlib import Path

# Configure before importing the package so logging and settings pick it up
os.environ.setdefault("SESSION_STORAGE", "memory")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from authsession.config import reset_settings_cache  # noqa: E402
from authsession.portal import LoggingNavigator  # noqa: E402
from authsession.storage.memory import MemoryStorage  # noqa: E402
from authsession.tokens import TokenStore  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


def pytest_pyfunc_call(pyfuncitem):
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames
            if name in pyfuncitem.funcargs
        }
        asyncio.run(pyfuncitem.obj(**call_kwargs))
        return True
    return None


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def token_store(storage):
    """Session logged in as A1/R1."""
    store = TokenStore(storage)
    store.set_tokens("A1", "R1")
    return store


@pytest.fixture
def navigator():
    return LoggingNavigator()
