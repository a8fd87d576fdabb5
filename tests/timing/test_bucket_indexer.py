from __future__ import annotations

import datetime as dt

import pytest

from barops.timing.bucket_indexer import BucketIndexer

UTC = dt.timezone.utc
START = dt.datetime(2024, 3, 15, 16, 0, tzinfo=UTC)
END = dt.datetime(2024, 3, 16, 2, 0, tzinfo=UTC)


def test_indexer_maps_instants_to_buckets():
    indexer = BucketIndexer(START, END)
    assert indexer.num_buckets == 40
    assert indexer.labels[0] == "16:00"
    assert indexer.labels[-1] == "01:45"
    assert indexer.bucket_of_datetime(START + dt.timedelta(minutes=20)) == 1
    assert indexer.bucket_of_datetime(START - dt.timedelta(minutes=1)) is None
    assert indexer.bucket_of_datetime(END) is None


def test_completed_bucket_count_and_elapsed():
    indexer = BucketIndexer(START, END)
    now = START + dt.timedelta(minutes=20)
    assert indexer.elapsed_minutes(now) == pytest.approx(20.0)
    assert indexer.completed_bucket_count(now) == 2
    assert indexer.completed_bucket_count(START - dt.timedelta(hours=1)) == 0
    assert indexer.completed_bucket_count(END + dt.timedelta(hours=1)) == 40
    assert indexer.elapsed_fraction(START + dt.timedelta(minutes=300)) == pytest.approx(0.5)


def test_last_bucket_end_is_clamped():
    indexer = BucketIndexer(START, START + dt.timedelta(minutes=20))
    assert indexer.num_buckets == 2
    assert indexer.boundaries() == [
        START + dt.timedelta(minutes=15),
        START + dt.timedelta(minutes=20),
    ]


def test_labels_follow_local_opening_clock():
    indexer = BucketIndexer(START, END, opening_minute_of_day=15 * 60 + 30)
    assert indexer.labels[0] == "15:30"


@pytest.mark.parametrize("bucket_minutes", [0, -15, 7])
def test_invalid_bucket_sizes_raise(bucket_minutes):
    with pytest.raises(ValueError):
        BucketIndexer(START, END, bucket_minutes=bucket_minutes)
