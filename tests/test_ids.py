import re
import time

import pytest

from missiondir import ids
from missiondir.errors import GenerationError

_ID = re.compile(r"^[0-9a-hjkmnp-tv-z]{26}$")


def test_generate_is_lowercase_ulid():
    value = ids.generate()
    assert _ID.match(value), value
    assert value == value.lower()


def test_generate_is_unique_within_a_run():
    seen = {ids.generate() for _ in range(2000)}
    assert len(seen) == 2000


def test_ids_sort_by_creation_time():
    early = ids.generate(now_ms=1_600_000_000_000)
    late = ids.generate(now_ms=1_600_000_000_001)
    assert early < late
    assert sorted([late, early]) == [early, late]


def test_timestamp_round_trips_from_id():
    now = int(time.time() * 1000)
    assert ids.timestamp_of(ids.generate(now_ms=now)) == now


def test_timestamp_of_rejects_garbage():
    with pytest.raises(ValueError):
        ids.timestamp_of("not-an-id")
    with pytest.raises(ValueError):
        ids.timestamp_of("u" * 26)


def test_entropy_failure_raises_generation_error():
    def broken(n: int) -> bytes:
        raise NotImplementedError("no entropy source")

    with pytest.raises(GenerationError):
        ids.generate(entropy=broken)


def test_short_entropy_read_raises_generation_error():
    with pytest.raises(GenerationError):
        ids.generate(entropy=lambda n: b"\x00")


def test_timestamp_out_of_range():
    with pytest.raises(GenerationError):
        ids.generate(now_ms=-1)


def test_timestamp_of_normalizes_before_checking_length():
    minted = ids.generate(now_ms=1_700_000_000_123)
    assert ids.timestamp_of(f"  {minted.upper()}\n") == 1_700_000_000_123
    with pytest.raises(ValueError):
        ids.timestamp_of(minted[:-1] + "  ")
    with pytest.raises(ValueError):
        ids.timestamp_of(minted + "0")
