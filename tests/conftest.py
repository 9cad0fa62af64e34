"""Shared fixtures for the seqpipe tests."""
import os
import pytest
from seqpipe.pipe.core import AbstractSource, Pipeline
from seqpipe.pipe.stages import identity
from seqpipe.util import config


class CountingSource(AbstractSource):
    """An array source that records every element it hands to the pipeline."""

    def __init__(self, items):
        self.items = items
        self.visited = []
        self.passes = 0

    def iterate(self, stop_on):
        self.passes += 1
        for item in self.items:
            self.visited.append(item)
            if stop_on(item):
                break


@pytest.fixture
def counting_pipeline():
    """Returns a function building (source, pipeline) over the given items."""

    def _make(items):
        src = CountingSource(items)
        return src, Pipeline(identity, src)

    return _make


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
def patch_get_config(monkeypatch):
    """Replace get_config so tests never read ~/.seqpipe.toml.

    Returns a function to set the configuration the patched get_config returns.
    """
    values = {}
    monkeypatch.setattr("seqpipe.util.config.get_config", lambda *args, **kwargs: values)

    def _set(new_values):
        values.clear()
        values.update(new_values)

    return _set


@pytest.fixture(autouse=True)
def clean_config():
    config.reset_config()
    yield
    config.reset_config()
