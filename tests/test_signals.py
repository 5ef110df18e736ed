import signal

import pytest

from asteroidnet.signals import ShutdownSignals


class _Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


def test_signal_cancels():
    counter = _Counter()
    handler = ShutdownSignals(counter)
    handler.handle(signal.SIGTERM)
    assert counter.calls == 1


def test_second_consecutive_sigint_exits():
    counter = _Counter()
    handler = ShutdownSignals(counter)
    handler.handle(signal.SIGINT)
    with pytest.raises(SystemExit) as excinfo:
        handler.handle(signal.SIGINT)
    assert excinfo.value.code == 1
    assert counter.calls == 1


def test_interleaved_signal_resets_sigint_streak():
    counter = _Counter()
    handler = ShutdownSignals(counter)
    handler.handle(signal.SIGINT)
    handler.handle(signal.SIGTERM)
    handler.handle(signal.SIGINT)
    assert counter.calls == 3


def test_install_routes_real_signal():
    counter = _Counter()
    handler = ShutdownSignals(counter)
    previous = handler.install()
    try:
        assert signal.SIGTERM in previous
        assert signal.SIGINT in previous
        signal.raise_signal(signal.SIGTERM)
        assert counter.calls == 1
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)