"""PyTest configuration shared by the lazystream tests."""

import os
import pytest
import lazystream.util.config


@pytest.fixture(autouse=True)
def fresh_config():
    """Make sure no test sees configuration cached by another one."""
    lazystream.util.config.reset_config()
    yield
    lazystream.util.config.reset_config()


@pytest.fixture
def monkeypatched_env(monkeypatch):
    """Fixture to replace environment variables with a provided dictionary."""

    def _set_env(env_vars):
        for key in list(os.environ.keys()):
            monkeypatch.delenv(key, raising=False)

        for key, value in env_vars.items():
            monkeypatch.setenv(key, value)

    return _set_env


@pytest.fixture
def recording_source():
    """Returns a factory for generators that record every value pulled from them."""

    def _make(values):
        pulled = []

        def gen():
            for value in values:
                pulled.append(value)
                yield value

        return gen(), pulled

    return _make
