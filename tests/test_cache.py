# tests/test_cache.py
# Caché del directorio: TTL, un solo refresco concurrente y fallos de la fuente.

import threading
import time

import pytest

from rsvp_app.directory.builder import build_directory_from_text
from rsvp_app.directory.cache import DirectoryCache
from rsvp_app.errors import SourceUnavailable


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _loader_counting(csv_text, calls, delay=0.0):
    def loader(source, layout):
        calls.append(1)
        if delay:
            time.sleep(delay)
        return build_directory_from_text(csv_text, layout=layout)
    return loader


def test_snapshot_is_reused_within_ttl(sample_csv):
    calls, clock = [], Clock()
    cache = DirectoryCache(object(), ttl_seconds=60, clock=clock, loader=_loader_counting(sample_csv, calls))
    first = cache.get()
    clock.now += 59
    assert cache.get() is first
    assert len(calls) == 1


def test_expired_snapshot_is_rebuilt(sample_csv):
    calls, clock = [], Clock()
    cache = DirectoryCache(object(), ttl_seconds=60, clock=clock, loader=_loader_counting(sample_csv, calls))
    first = cache.get()
    clock.now += 60
    second = cache.get()
    assert second is not first
    assert len(calls) == 2
    assert cache.snapshot.generation == 2


def test_concurrent_readers_trigger_a_single_refresh(sample_csv):
    calls = []
    cache = DirectoryCache(object(), ttl_seconds=60, loader=_loader_counting(sample_csv, calls, delay=0.05))
    results = []

    def reader():
        results.append(cache.get())

    threads = [threading.Thread(target=reader) for _ in range(8)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert len(calls) == 1
    assert all(r is results[0] for r in results)


def test_failed_refresh_raises_and_keeps_previous_snapshot(sample_csv):
    clock = Clock()
    state = {"fail": False}

    def loader(source, layout):
        if state["fail"]:
            raise SourceUnavailable(detail="boom")
        return build_directory_from_text(sample_csv, layout=layout)

    cache = DirectoryCache(object(), ttl_seconds=60, clock=clock, loader=loader)
    cache.get()
    old = cache.snapshot

    state["fail"] = True
    clock.now += 120
    with pytest.raises(SourceUnavailable):
        cache.get()
    assert cache.snapshot is old                      # No se reemplaza por uno vacío.


def test_force_refresh_ignores_ttl(sample_csv):
    calls = []
    cache = DirectoryCache(object(), ttl_seconds=3600, loader=_loader_counting(sample_csv, calls))
    cache.get()
    snap = cache.refresh(force=True)
    assert snap.generation == 2
    assert len(calls) == 2


def test_zero_ttl_rebuilds_every_time(sample_csv):
    calls = []
    cache = DirectoryCache(object(), ttl_seconds=0, loader=_loader_counting(sample_csv, calls))
    cache.get()
    cache.get()
    assert len(calls) == 2


def test_zero_ttl_concurrent_readers_share_the_in_flight_rebuild(sample_csv):
    calls = []
    cache = DirectoryCache(object(), ttl_seconds=0, loader=_loader_counting(sample_csv, calls, delay=0.2))
    barrier = threading.Barrier(5)
    results = []

    def reader():
        barrier.wait()
        results.append(cache.get())

    threads = [threading.Thread(target=reader) for _ in range(5)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert len(calls) == 1
    assert all(r is results[0] for r in results)
    assert cache.snapshot.generation == 1


def test_invalidate_forces_a_rebuild(sample_csv):
    calls = []
    cache = DirectoryCache(object(), ttl_seconds=3600, loader=_loader_counting(sample_csv, calls))
    cache.get()
    cache.invalidate()
    assert cache.snapshot is None
    cache.get()
    assert len(calls) == 2
