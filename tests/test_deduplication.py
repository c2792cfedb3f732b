"""
Unit tests for the duplicate detection pass.
"""

import os

import pytest
from dupehunter.models import FingerprintRecord
from dupehunter.scanner import (
    DetectionError,
    IngestCoordinator,
    WorkerPool,
    find_duplicates,
    load_fingerprints,
)


def store_records(ns, records):
    for record in records:
        ns.put(record.path, record.to_json())


class TestLoadFingerprints:
    """Test load_fingerprints function."""

    def test_loads_all(self, images_ns, record_factory):
        store_records(images_ns, [record_factory("/a.jpg", 0), record_factory("/b.jpg", 3)])
        images = load_fingerprints(images_ns)
        assert set(images) == {"/a.jpg", "/b.jpg"}
        assert images["/a.jpg"] - images["/b.jpg"] == 3

    def test_corrupt_record_aborts(self, images_ns, record_factory):
        store_records(images_ns, [record_factory("/a.jpg", 0)])
        images_ns.put("/bad.jpg", b"{broken")
        with pytest.raises(DetectionError, match="deserialize"):
            load_fingerprints(images_ns)

    def test_bad_fingerprint_width_aborts(self, images_ns, record_factory):
        record = record_factory("/a.jpg", 0)
        record.fingerprint = b"\x00\x01\x02"
        store_records(images_ns, [record])
        with pytest.raises(DetectionError, match="failed to load image hash"):
            load_fingerprints(images_ns)


class TestFindDuplicates:
    """Test find_duplicates function."""

    def test_near_duplicates_flagged(self, images_ns, record_factory):
        # X and Y differ by 2 bits, Z is 40 bits away from X
        store_records(images_ns, [
            record_factory("/x.jpg", 0),
            record_factory("/y.jpg", 2),
            record_factory("/z.jpg", 40),
        ])
        report = find_duplicates(images_ns, threshold=12)

        assert report.flagged == {"/x.jpg", "/y.jpg"}
        assert report.records_loaded == 3
        dupes = report.duplicate_pairs
        assert len(dupes) == 1
        assert {dupes[0].a, dupes[0].b} == {"/x.jpg", "/y.jpg"}
        assert dupes[0].distance == 2

    def test_threshold_is_strict(self, images_ns, record_factory):
        store_records(images_ns, [record_factory("/a.jpg", 0), record_factory("/b.jpg", 12)])
        assert find_duplicates(images_ns, threshold=12).flagged == set()
        assert find_duplicates(images_ns, threshold=13).flagged == {"/a.jpg", "/b.jpg"}

    def test_threshold_zero_flags_nothing(self, images_ns, record_factory):
        store_records(images_ns, [record_factory("/a.jpg", 0), record_factory("/b.jpg", 0)])
        assert find_duplicates(images_ns, threshold=0).flagged == set()

    def test_identical_hashes(self, images_ns, record_factory):
        store_records(images_ns, [record_factory("/a.jpg", 5), record_factory("/b.jpg", 5)])
        report = find_duplicates(images_ns, threshold=1)
        assert report.flagged == {"/a.jpg", "/b.jpg"}

    def test_chain_flags_all_members(self, images_ns, record_factory):
        # a-b = 8, b-c = 8, a-c = 16: b links a and c without a cluster
        store_records(images_ns, [
            record_factory("/a.jpg", 0),
            record_factory("/b.jpg", 8),
            record_factory("/c.jpg", 16),
        ])
        report = find_duplicates(images_ns, threshold=12)
        assert report.flagged == {"/a.jpg", "/b.jpg", "/c.jpg"}
        dupe_pairs = {frozenset((p.a, p.b)) for p in report.duplicate_pairs}
        assert dupe_pairs == {frozenset(("/a.jpg", "/b.jpg")), frozenset(("/b.jpg", "/c.jpg"))}

    def test_each_pair_evaluated_once(self, images_ns, record_factory):
        store_records(images_ns, [record_factory(f"/{i}.jpg", i * 10) for i in range(5)])
        report = find_duplicates(images_ns, threshold=3)
        keys = [frozenset((p.a, p.b)) for p in report.pairs]
        assert len(keys) == len(set(keys)) == 10
        assert report.flagged == set()

    def test_flagged_outer_candidates_not_reseeded(self, images_ns, record_factory):
        store_records(images_ns, [
            record_factory("/a.jpg", 0),
            record_factory("/b.jpg", 1),
            record_factory("/c.jpg", 2),
        ])
        report = find_duplicates(images_ns, threshold=12)
        # the first unflagged outer path pairs with both others; no flagged path seeds again
        assert len(report.pairs) == 2
        assert report.flagged == {"/a.jpg", "/b.jpg", "/c.jpg"}

    def test_idempotent(self, images_ns, record_factory):
        store_records(images_ns, [record_factory(f"/{i}.jpg", b) for i, b in enumerate([0, 3, 30, 33, 60])])
        first = find_duplicates(images_ns, threshold=12)
        second = find_duplicates(images_ns, threshold=12)
        assert first.flagged == second.flagged == {"/0.jpg", "/1.jpg", "/2.jpg", "/3.jpg"}

    def test_distances_symmetric(self, images_ns, record_factory):
        store_records(images_ns, [record_factory(f"/{i}.jpg", i * 7) for i in range(4)])
        images = load_fingerprints(images_ns)
        for a in images.values():
            for b in images.values():
                assert a - b == b - a

    def test_empty_store(self, images_ns):
        report = find_duplicates(images_ns)
        assert report.flagged == set()
        assert report.pairs == []
        assert report.records_loaded == 0

    def test_single_record(self, images_ns, record_factory):
        store_records(images_ns, [record_factory("/only.jpg", 0)])
        report = find_duplicates(images_ns)
        assert report.pairs == []

    def test_negative_threshold(self, images_ns):
        with pytest.raises(ValueError):
            find_duplicates(images_ns, threshold=-1)

    def test_mismatched_hash_sizes(self, images_ns, record_factory):
        other = record_factory("/big.jpg", 0)
        other.fingerprint = b"\x00" * 32  # 16x16 hash
        store_records(images_ns, [record_factory("/a.jpg", 0), other])
        with pytest.raises(DetectionError, match="failed to calculate distance"):
            find_duplicates(images_ns)

    def test_corrupt_record_aborts(self, images_ns, record_factory):
        store_records(images_ns, [record_factory("/a.jpg", 0)])
        images_ns.put("/bad.jpg", b"[]")
        with pytest.raises(DetectionError):
            find_duplicates(images_ns)


class TestIngestThenDetect:
    """End-to-end: ingest real images, then detect."""

    def test_real_images(self, sample_images, store):
        paths = [sample_images['gradient'], sample_images['gradient_copy'], sample_images['reversed']]
        with WorkerPool(max_workers=3) as pool:
            IngestCoordinator(store, pool).run(paths)

        report = find_duplicates(store.namespace('images'), threshold=12)
        assert report.flagged == {
            os.path.abspath(sample_images['gradient']),
            os.path.abspath(sample_images['gradient_copy']),
        }

    def test_detection_sees_previous_runs(self, sample_images, store):
        with WorkerPool(max_workers=2) as pool:
            coordinator = IngestCoordinator(store, pool)
            coordinator.run([sample_images['gradient']])
            coordinator.run([sample_images['gradient_copy']])
            coordinator.run([])

        report = find_duplicates(store.namespace('images'))
        assert len(report.flagged) == 2
        record = FingerprintRecord.from_json(
            store.namespace('images').get(os.path.abspath(sample_images['gradient']))
        )
        assert record.name == "gradient.png"
