"""Tests for log-scale bucketing."""

import pytest

from git_survey.histogram import HBIN, QBIN, Histogram, hbin, qbin


class TestWideBins:
    """Base-16 buckets used for object sizes."""

    def test_zero_is_bucket_zero(self):
        assert hbin(0) == 0

    def test_bucket_boundaries(self):
        assert hbin(15) == 0
        assert hbin(16) == 1
        assert hbin(255) == 1
        assert hbin(256) == 2
        assert hbin(20000) == 3

    def test_monotonic(self):
        values = list(range(0, 5000)) + [16**k + d for k in range(1, 16) for d in (-1, 0, 1)]
        values.sort()
        for a, b in zip(values, values[1:]):
            assert hbin(a) <= hbin(b)

    def test_huge_values_collapse_into_last_bucket(self):
        assert hbin(2**64 - 1) == HBIN.length - 1
        assert hbin(2**80) == HBIN.length - 1

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            hbin(-1)


class TestNarrowBins:
    """Base-4 buckets used for tree entry counts."""

    def test_boundaries(self):
        assert qbin(0) == 0
        assert qbin(3) == 0
        assert qbin(4) == 1
        assert qbin(15) == 1
        assert qbin(16) == 2
        assert qbin(17) == 2

    def test_monotonic(self):
        for v in range(0, 3000):
            assert qbin(v) <= qbin(v + 1)

    def test_lengths(self):
        assert HBIN.length == 16
        assert QBIN.length == 32


class TestRanges:
    def test_ranges_agree_with_index(self):
        """Every bucket's declared bounds map back to that bucket."""
        for scheme in (HBIN, QBIN):
            for k, lower, upper in scheme.ranges():
                if upper >= 2**64:
                    break
                assert scheme.index(lower) == k
                assert scheme.index(upper) == k

    def test_first_hbin_ranges(self):
        ranges = list(HBIN.ranges())[:3]
        assert ranges == [(0, 0, 15), (1, 16, 255), (2, 256, 4095)]

    def test_keys(self):
        assert HBIN.key(3) == "H3"
        assert HBIN.key(12) == "H12"
        assert QBIN.key(3) == "Q03"


class TestHistogram:
    def test_record_accumulates_sizes(self):
        hist = Histogram(HBIN)
        hist.record(20000, 20000, 9000)
        hist.record(30000, 30000, 1000)
        hist.record(10, 10, 10)

        rows = list(hist.rows())
        assert [r.key for r in rows] == ["H0", "H3"]
        h3 = rows[1]
        assert h3.bin.count == 2
        assert h3.bin.sum_size == 50000
        assert h3.bin.sum_disk_size == 10000
        assert (h3.lower, h3.upper) == (4096, 65535)

    def test_magnitude_independent_of_sizes(self):
        """Entry-count histograms bucket by count but sum byte sizes."""
        hist = Histogram(QBIN)
        k = hist.record(5, 1234, 600)
        assert k == 1
        assert hist.bins[1].sum_size == 1234
        assert hist.total_count == 1

    def test_empty_histogram_has_no_rows(self):
        assert list(Histogram(QBIN).rows()) == []
