"""Tests for the TTL key set."""

from flobot.common.tempo import Tempo


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestTempo:
    def test_unknown_key(self):
        assert not Tempo().exists("try")

    def test_key_lives_until_ttl(self):
        clock = FakeClock()
        tempo = Tempo(clock=clock)

        tempo.set("try", 1.0)
        assert tempo.exists("try")

        clock.now += 0.99
        assert tempo.exists("try")

        clock.now += 0.01
        assert not tempo.exists("try")

    def test_expired_key_is_removed_on_lookup(self):
        clock = FakeClock()
        tempo = Tempo(clock=clock)
        tempo.set("expire", 0.1)
        assert len(tempo) == 1

        clock.now += 1
        assert not tempo.exists("expire")
        assert len(tempo) == 0

    def test_set_overwrites_expiry(self):
        clock = FakeClock()
        tempo = Tempo(clock=clock)
        tempo.set("key", 1.0)
        tempo.set("key", 10.0)

        clock.now += 5
        assert tempo.exists("key")

    def test_shared_between_holders(self):
        tempo = Tempo()
        shared = tempo
        tempo.set("cloned", 60)
        assert shared.exists("cloned")
