import contextlib
import os
import socket

import pytest

from greetings.config import Config
from greetings.config import SETTINGS
from greetings.greeting import GreetingService
from greetings.utils import STAGE_ENV_VAR

fixture_samples_dir = os.getenv('SAMPLES_DIR', 'samples/hello_world')


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Removes the configuration variables possibly defined in the test environment."""
    for env_var, _ in SETTINGS.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.delenv(STAGE_ENV_VAR, raising=False)


@pytest.fixture
def samples_dir(monkeypatch):
    path = os.path.abspath(fixture_samples_dir)
    monkeypatch.syspath_prepend(path)
    monkeypatch.chdir(path)
    yield path


@pytest.fixture
def unused_tcp_port():
    with contextlib.closing(socket.socket()) as sock:
        sock.bind(('localhost', 0))
        return sock.getsockname()[1]


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def greeting_service():
    return GreetingService()


def pytest_sessionstart():
    if not os.path.exists(fixture_samples_dir):
        msg = "Undefined samples folder: (environment variable 'SAMPLES_DIR' must be redefined)."
        raise pytest.UsageError(msg)
