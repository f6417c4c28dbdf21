from types import MappingProxyType

import numpy as np
import pytest

from geofinder.common.errors import InternalConsistencyError
from geofinder.common.models import PointRecord
from geofinder.index.builder import ProximityIndex, build, summarise, verify_integrity
from geofinder.index.projection import project
from geofinder.index.region_index import RegionIndex
from geofinder.index.regions import RegionStore


def _records() -> list[PointRecord]:
    return [
        PointRecord(id=101, latitude=46.5, longitude=2.5),
        PointRecord(id=102, latitude=46.2, longitude=5.5),
        PointRecord(id=103, latitude=10.0, longitude=10.0),
        PointRecord(id=104, latitude=46.7, longitude=2.9),
    ]


def test_build_indexes_every_contained_point(overlapping_regions):
    records = _records()
    index = build(overlapping_regions, records)

    for region in overlapping_regions:
        region_index = index.region_indices[region.position]
        keys = set(region_index.keys().tolist())
        for key, record in enumerate(records):
            if region.contains(record.longitude, record.latitude):
                assert key in keys
                row = region_index.keys().tolist().index(key)
                assert tuple(region_index.coordinates()[row]) == pytest.approx(project(record.latitude, record.longitude))
            else:
                assert key not in keys


def test_overlapping_regions_share_points(overlapping_regions):
    index = build(overlapping_regions, _records())
    # id 104 at lon 2.9 lies in both R1 and R2.
    assert 3 in index.region_indices[0].keys().tolist()
    assert 3 in index.region_indices[1].keys().tolist()


def test_every_region_gets_an_index_even_when_empty(disjoint_regions):
    index = build(disjoint_regions, [PointRecord(id=1, latitude=46.5, longitude=2.5)])

    assert set(index.region_indices) == {0, 1}
    assert len(index.region_indices[0]) == 1
    assert len(index.region_indices[1]) == 0


def test_uncontained_records_remain_in_record_table(disjoint_regions):
    records = _records()
    index = build(disjoint_regions, records)

    assert index.records == tuple(records)
    indexed = {int(k) for ri in index.region_indices.values() for k in ri.keys()}
    assert 2 not in indexed
    assert index.record(2).id == 103


def test_referential_integrity_after_build(disjoint_regions):
    index = build(disjoint_regions, _records())
    for region_index in index.region_indices.values():
        for key in region_index.keys():
            assert 0 <= key < len(index.records)
    verify_integrity(index)


def test_parallel_build_matches_sequential(overlapping_regions):
    records = _records()
    sequential = build(overlapping_regions, records, workers=1)
    parallel = build(overlapping_regions, records, workers=4)

    for position in sequential.region_indices:
        assert sequential.region_indices[position].keys().tolist() == parallel.region_indices[position].keys().tolist()


def test_built_index_is_read_only(disjoint_regions):
    index = build(disjoint_regions, _records())
    with pytest.raises(TypeError):
        index.region_indices[5] = RegionIndex.empty()
    with pytest.raises(AttributeError):
        index.records = ()


def test_verify_integrity_rejects_dangling_keys(disjoint_regions):
    broken = ProximityIndex(
        regions=disjoint_regions,
        region_indices=MappingProxyType(
            {
                0: RegionIndex(np.array([project(46.5, 2.5)]), np.array([9])),
                1: RegionIndex.empty(),
            }
        ),
        records=(PointRecord(id=1, latitude=46.5, longitude=2.5),),
    )
    with pytest.raises(InternalConsistencyError):
        verify_integrity(broken)
    with pytest.raises(InternalConsistencyError):
        broken.record(9)


def test_verify_integrity_rejects_missing_region_entry(disjoint_regions):
    broken = ProximityIndex(
        regions=disjoint_regions,
        region_indices=MappingProxyType({0: RegionIndex.empty()}),
        records=(),
    )
    with pytest.raises(InternalConsistencyError):
        verify_integrity(broken)


def test_summarise_counts(overlapping_regions):
    stats = summarise(build(overlapping_regions, _records()))

    assert stats.region_count == 2
    assert stats.record_count == 4
    assert stats.points_per_region == {"R1": 2, "R2": 1}
    assert stats.indexed_points == 3
    assert stats.unindexed_records == 2
    assert stats.to_dict()["points_per_region"] == {"R1": 2, "R2": 1}


def test_build_with_no_records(disjoint_regions):
    index = build(disjoint_regions, [])
    assert index.records == ()
    assert all(len(ri) == 0 for ri in index.region_indices.values())


def test_build_end_event_carries_index_stats(overlapping_regions):
    events = {}

    class _Recorder:
        def log(self, _level, _message, extra=None):
            events[extra["event"]] = extra

    build(overlapping_regions, _records(), logger=_Recorder())

    stats = events["BUILD_END"]["stats"]
    assert stats["points_per_region"] == {"R1": 2, "R2": 1}
    assert stats["unindexed_records"] == 2
    assert stats["record_count"] == 4
