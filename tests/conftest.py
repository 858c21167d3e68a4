"""Pytest configuration and shared fixtures."""

import gzip

import pytest
from click.testing import CliRunner

from transopen.cli import cli
from transopen.config import Settings
from transopen.probe import has_program


@pytest.fixture(autouse=True)
def clear_probe_cache():
    """Forget memoized program probes so tests cannot leak answers.

    has_program() caches per process; a test that patches the spawn helper
    must not leave a fake answer behind for the next one.
    """
    has_program.cache_clear()
    yield
    has_program.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Drop TRANSOPEN_* variables from the environment of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("TRANSOPEN_"):
            monkeypatch.delenv(key)


@pytest.fixture
def settings():
    """Settings that decode gzip in-process (no zcat dependency)."""
    return Settings(use_zcat=False)


@pytest.fixture
def zcat_settings():
    """Settings that require the external zcat decoder."""
    if not has_program("zcat"):
        pytest.skip("zcat not installed")
    return Settings(use_zcat=True)


@pytest.fixture
def cli_runner():
    """Provide Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(cli_runner):
    """Helper to invoke the CLI with args and optional input.

    Usage:
        result = invoke(["cat", "file.gz"])
        result = invoke(["cat", "-"], input_data=b"...")
    """

    def _invoke(args, input_data=None):
        return cli_runner.invoke(cli, args, input=input_data)

    return _invoke


@pytest.fixture
def sample_bytes():
    """Provide a multi-line payload larger than one buffer."""
    return b"".join(b"line %06d\tsome payload text\n" % i for i in range(5000))


@pytest.fixture
def gz_file(tmp_path, sample_bytes):
    """Provide a gzip file holding sample_bytes."""
    path = tmp_path / "sample.txt.gz"
    path.write_bytes(gzip.compress(sample_bytes))
    return path


@pytest.fixture
def plain_file(tmp_path, sample_bytes):
    """Provide an uncompressed file holding sample_bytes."""
    path = tmp_path / "sample.txt"
    path.write_bytes(sample_bytes)
    return path
