from datetime import datetime, timedelta

import pytest


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def notify(self, text, chat_id):
        if self.fail:
            raise RuntimeError("telegram is down")
        self.sent.append((text, chat_id))


class StubRng:
    """Stands in for numpy's Generator with fixed draws."""

    def __init__(self, value: float, pick: int = 0):
        self.value = value
        self.pick = pick

    def random(self):
        return self.value

    def choice(self, options):
        return options[self.pick]


def codes(*values):
    iterator = iter(values)
    return lambda: next(iterator)


@pytest.fixture
def clock():
    return FakeClock()
