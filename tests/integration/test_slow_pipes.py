"""Readers over pipes whose producer is still running but has gone quiet."""

import gzip
import os
import threading
import time
import zlib

import pytest

from transopen import buf
from transopen.config import Settings


def run_with_deadline(func, timeout=5.0):
    """Call ``func`` on a helper thread; return (finished, result)."""
    outcome = {}

    def target():
        outcome["result"] = func()

    worker = threading.Thread(target=target, daemon=True)
    worker.start()
    worker.join(timeout)
    return not worker.is_alive(), outcome.get("result")


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True


@pytest.fixture
def quiet_pipe():
    """Pipe whose write end stays open until the test is done."""
    read_fd, write_fd = os.pipe()
    state = {"write_fd": write_fd}

    def hang_up():
        if state["write_fd"] is not None:
            os.close(state["write_fd"])
            state["write_fd"] = None

    yield read_fd, write_fd, hang_up
    hang_up()


@pytest.mark.parametrize("buffering", [-1, 0], ids=["buffered", "unbuffered"])
def test_readline_returns_available_line(quiet_pipe, buffering):
    read_fd, write_fd, _ = quiet_pipe
    os.write(write_fd, b"first line\n")
    rdr = buf(os.fdopen(read_fd, "rb", buffering=buffering), Settings(use_zcat=False))

    finished, line = run_with_deadline(rdr.readline, timeout=2.0)
    assert finished, "readline waited for more than the producer wrote"
    assert line == b"first line\n"

    os.write(write_fd, b"second line\n")
    assert rdr.readline() == b"second line\n"
    rdr.close()


def test_gzip_line_available_before_producer_finishes(quiet_pipe):
    read_fd, write_fd, _ = quiet_pipe
    compressor = zlib.compressobj(wbits=31)
    os.write(write_fd, compressor.compress(b"first line\n"))
    os.write(write_fd, compressor.flush(zlib.Z_SYNC_FLUSH))
    rdr = buf(os.fdopen(read_fd, "rb"), Settings(use_zcat=False))
    assert rdr.compressed is True

    finished, line = run_with_deadline(rdr.readline, timeout=2.0)
    assert finished
    assert line == b"first line\n"
    rdr.close()


def test_close_zcat_reader_while_producer_is_quiet(quiet_pipe, zcat_settings):
    read_fd, write_fd, hang_up = quiet_pipe
    os.write(write_fd, gzip.compress(b"hello\n")[:10])
    raw = os.fdopen(read_fd, "rb")
    rdr = buf(raw, zcat_settings)
    assert rdr.compressed is True

    finished, _ = run_with_deadline(rdr.close)
    assert finished, "close() blocked on the zcat feeder"
    assert rdr.closed

    # Once the producer hangs up the feeder lets go and the pipe is closed
    hang_up()
    assert wait_until(lambda: raw.closed)


def test_zcat_feeder_stops_reading_at_close(quiet_pipe, zcat_settings):
    read_fd, write_fd, _ = quiet_pipe
    os.write(write_fd, gzip.compress(b"hello\n")[:10])
    raw = os.fdopen(read_fd, "rb", buffering=0)
    rdr = buf(raw, zcat_settings, close_raw=False)

    finished, _ = run_with_deadline(rdr.close)
    assert finished

    # Bytes written after close stay in the pipe for the stream's owner
    os.write(write_fd, b"after close")
    assert raw.read(100) == b"after close"
    raw.close()

