"""Log-scale histogram bucketing for object sizes and entry counts.

Object sizes range from a few bytes to several gigabytes, so linear buckets
are useless. Two schemes are provided:

    hbin -- base 16. Bucket k holds [16^k, 16^(k+1)), with 0..15 in bucket 0.
            Coarse at the high end, which is fine: n blobs of 1GB and n blobs
            of 1.5GB are the same scaling problem.
    qbin -- base 4. Finer resolution at the low end, used for tree entry
            counts which are usually small.

Magnitudes are treated as 64-bit unsigned values. Anything wider collapses
into the last bucket.

Example:
    >>> hbin(0), hbin(15), hbin(16), hbin(20000)
    (0, 0, 1, 3)
    >>> qbin(3), qbin(4), qbin(17)
    (0, 1, 2)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

MAGNITUDE_BITS = 64


@dataclass(frozen=True)
class BinScheme:
    """Shift/mask description of a log-scale bucketing."""

    name: str
    shift: int
    key_prefix: str
    key_width: int = 0

    @property
    def mask(self) -> int:
        return (1 << self.shift) - 1

    @property
    def length(self) -> int:
        return MAGNITUDE_BITS // self.shift

    def index(self, value: int) -> int:
        """Return the bucket index for a non-negative magnitude."""
        if value < 0:
            raise ValueError(f"{self.name}: magnitude must be non-negative, got {value}")
        for k in range(self.length):
            if value & ~self.mask == 0:
                return k
            value >>= self.shift
        return self.length - 1

    def ranges(self) -> Iterator[tuple[int, int, int]]:
        """Yield (index, lower, upper) for every bucket, inclusive bounds.

        Replays the same shift/mask steps that index() uses, so the declared
        range of a bucket always agrees with the values assigned to it.
        """
        lower = 0
        upper = self.mask
        for k in range(self.length):
            yield k, lower, upper
            lower = upper + 1
            upper = (upper << self.shift) + self.mask

    def key(self, index: int) -> str:
        """Report key for a bucket, e.g. ``H3`` or ``Q07``."""
        return f"{self.key_prefix}{index:0{self.key_width}d}"


HBIN = BinScheme(name="hbin", shift=4, key_prefix="H")
QBIN = BinScheme(name="qbin", shift=2, key_prefix="Q", key_width=2)


def hbin(value: int) -> int:
    """Wide (base 16) bucket index."""
    return HBIN.index(value)


def qbin(value: int) -> int:
    """Narrow (base 4) bucket index."""
    return QBIN.index(value)


@dataclass
class HistogramBin:
    """Count and byte totals of the objects that fell into one bucket."""

    count: int = 0
    sum_size: int = 0
    sum_disk_size: int = 0

    def add(self, size: int, disk_size: int) -> None:
        self.count += 1
        self.sum_size += size
        self.sum_disk_size += disk_size


@dataclass(frozen=True)
class BinRow:
    """A populated bucket together with its magnitude range."""

    index: int
    key: str
    lower: int
    upper: int
    bin: HistogramBin


@dataclass
class Histogram:
    """Fixed-length array of bins under one scheme."""

    scheme: BinScheme
    bins: list[HistogramBin] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.bins:
            self.bins = [HistogramBin() for _ in range(self.scheme.length)]

    def record(self, magnitude: int, size: int, disk_size: int) -> int:
        """Bucket ``magnitude`` and add the object's sizes to that bucket."""
        k = self.scheme.index(magnitude)
        self.bins[k].add(size, disk_size)
        return k

    def rows(self) -> Iterator[BinRow]:
        """Populated buckets in ascending order."""
        for k, lower, upper in self.scheme.ranges():
            b = self.bins[k]
            if b.count:
                yield BinRow(k, self.scheme.key(k), lower, upper, b)

    @property
    def total_count(self) -> int:
        return sum(b.count for b in self.bins)
