import pytest

from birb.ttl import TTL, TTLData


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make(cap, addition, base):
    clock = FakeClock()
    return clock, TTLData(cap, addition, base, clock=clock)


def test_new_ttl_expires_after_base():
    clock, data = make(100, 5, 10)
    ttl = data.ttl()
    assert isinstance(ttl, TTL)
    assert not ttl.expired()
    clock.now = 9.5
    assert not ttl.expired()
    clock.now = 10
    assert ttl.expired()


def test_read_extends_by_addition():
    clock, data = make(100, 5, 10)
    ttl = data.ttl()
    ttl.read()
    clock.now = 12
    assert not ttl.expired()
    clock.now = 15
    assert ttl.expired()


def test_read_is_capped_from_now():
    clock, data = make(20, 50, 10)
    ttl = data.ttl()
    ttl.read()
    clock.now = 19.9
    assert not ttl.expired()
    clock.now = 20
    assert ttl.expired()


def test_many_reads_never_exceed_cap():
    clock, data = make(30, 7, 5)
    ttl = data.ttl()
    for step in range(10):
        clock.now = float(step)
        ttl.read()
        assert ttl.expiration <= clock.now + data.cap


def test_expired_ttl_stays_expired_without_reads():
    clock, data = make(10, 1, 0)
    ttl = data.ttl()
    assert ttl.expired()
    clock.now = 50
    assert ttl.expired()


def test_ttl_copies_are_independent():
    clock, data = make(100, 10, 10)
    first = data.ttl()
    second = data.ttl()
    first.read()
    clock.now = 15
    assert not first.expired()
    assert second.expired()


def test_negative_duration_rejected():
    with pytest.raises(ValueError):
        TTLData(10, -1, 5)