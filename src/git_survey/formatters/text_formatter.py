"""Plain text formatter: fixed-width tables, one section per object type."""

from io import StringIO
from typing import List, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..config import SurveyConfig
from ..histogram import Histogram
from ..largest import LargeItemVec
from ..models import ObjectBaseStats, SurveyStats
from ..objects import ObjectKind
from .base import BaseFormatter

PAIR_WIDTH = 62
TABLE_WIDTH = 28
NUMBER_WIDTH = 14
DEFAULT_HEXSZ = 40

# Wide enough that no table ever wraps.
RENDER_WIDTH = 512

RULE = "-" * 79
BANNER = "=" * 79

WHENCE_LABELS = (
    ("missing", "Missing"),
    ("cached", "Cached"),
    ("loose", "Loose"),
    ("packed", "Packed"),
    ("dbcached", "DBCached"),
)

# (header, justify, minimum width)
Column = Tuple[str, str, int]


def render_table(table: Table) -> List[str]:
    """Render a table to plain lines, without colour or trailing blanks."""
    buf = StringIO()
    console = Console(file=buf, width=RENDER_WIDTH, color_system=None, highlight=False)
    console.print(table)
    return [line.rstrip() for line in buf.getvalue().splitlines()]


def ascii_table(columns: Sequence[Column]) -> Table:
    table = Table(box=box.ASCII, show_edge=False)
    for header, justify, width in columns:
        table.add_column(header, justify=justify, min_width=width, no_wrap=True)
    return table


class _Lines:
    """Accumulates report lines with the indentation rules of each table."""

    def __init__(self):
        self.lines: List[str] = []

    def blank(self) -> None:
        self.lines.append("")

    def line(self, indent: int, text: str) -> None:
        self.lines.append(" " * indent + text)

    def pair(self, indent: int, label: str, value: int) -> None:
        self.line(indent, f"{label:<{PAIR_WIDTH - indent}} : {value:>{NUMBER_WIDTH}}")

    def section(self, title: str) -> None:
        self.blank()
        self.line(0, title)
        self.line(0, RULE)
        self.blank()

    def table(self, indent: int, table: Table) -> None:
        for text in render_table(table):
            self.line(indent, text)

    def size_table(self, indent: int, bucket: str) -> Table:
        return ascii_table(
            [
                (bucket, "left", TABLE_WIDTH - indent),
                ("Count", "right", NUMBER_WIDTH),
                ("Size", "right", NUMBER_WIDTH),
                ("Disk Size", "right", NUMBER_WIDTH),
            ]
        )

    def histogram(self, indent: int, caption: str, bucket_hdr: str, hist: Histogram) -> None:
        self.blank()
        self.line(indent, caption)
        table = self.size_table(indent, bucket_hdr)
        for row in hist.rows():
            table.add_row(
                f"{row.lower}..{row.upper}",
                str(row.bin.count),
                str(row.bin.sum_size),
                str(row.bin.sum_disk_size),
            )
        self.table(indent, table)

    def __str__(self) -> str:
        return "\n".join(self.lines) + "\n"


class TextFormatter(BaseFormatter):
    """Human-readable report, in the layout of ``git survey``."""

    def format(self, stats: SurveyStats, config: SurveyConfig) -> str:
        out = _Lines()
        self._header(out)
        self._overview(out, stats)
        self._refs(out, stats, config)
        self._commits(out, stats, config)
        self._trees(out, stats, config)
        self._blobs(out, stats, config)
        return str(out)

    def _header(self, out: _Lines) -> None:
        out.blank()
        out.line(0, BANNER)
        out.line(0, "Git Survey Results")
        out.line(0, BANNER)
        out.blank()

    def _overview(self, out: _Lines, stats: SurveyStats, indent: int = 0) -> None:
        i1 = indent + 4
        out.section("OVERVIEW")
        out.pair(i1, "Total Number of Refs", stats.refs.count_total)
        if stats.missing_untyped:
            out.pair(i1, "Missing Objects of Unknown Type", stats.missing_untyped)

        out.blank()
        out.line(i1, "Overview by Object Type")
        table = out.size_table(i1, "Type")
        rows = (
            ("Commits", stats.commits.base),
            ("Trees", stats.trees.base),
            ("Blobs", stats.blobs.base),
        )
        for n, (label, base) in enumerate(rows):
            table.add_row(
                label,
                str(base.seen),
                str(base.sum_size),
                str(base.sum_disk_size),
                end_section=n == len(rows) - 1,
            )
        table.add_row(
            "Total", str(stats.total_seen), str(stats.total_size), str(stats.total_disk_size)
        )
        out.table(i1, table)
        out.blank()

    def _refs(self, out: _Lines, stats: SurveyStats, config: SurveyConfig, indent: int = 0) -> None:
        i1, i2, i3 = indent + 4, indent + 8, indent + 12
        refs = stats.refs
        wanted = config.wanted

        out.section("REFS")
        out.pair(i1, "Total Number of Refs", refs.count_total)

        out.blank()
        out.line(i1, "Reference Count by Type")
        if wanted.remotes and refs.remotes:
            out.pair(i2, "Remote Tracking Branches", refs.remotes)
        if wanted.branches and refs.branches:
            out.pair(i2, "Branches", refs.branches)
        if wanted.tags and refs.lightweight_tags:
            out.pair(i2, "Tags (Lightweight)", refs.lightweight_tags)
        if wanted.tags and refs.annotated_tags:
            out.pair(i2, "Tags (Annotated)", refs.annotated_tags)
        if wanted.detached and refs.detached:
            out.pair(i2, "Detached", refs.detached)
        if wanted.other and refs.other:
            out.pair(i2, "Other (Notes and Stashes)", refs.other)
        if refs.symrefs:
            out.pair(i2, "Symbolic Refs (like 'HEAD')", refs.symrefs)

        out.blank()
        classes = refs.sorted_classes()
        out.pair(i1, "Reference Count by Class", len(classes))
        for label, count in classes:
            out.pair(i2, label, count)

        out.blank()
        out.line(i1, "Reference Count by Storage Location")
        out.pair(i2, "Loose", refs.loose)
        out.pair(i2, "Packed", refs.packed)

        out.blank()
        out.line(i1, "String Length of Refnames")
        if refs.len_sum_remote:
            out.line(i2, "Remote Refs")
            out.pair(i3, "Max", refs.len_max_remote)
            out.pair(i3, "Sum", refs.len_sum_remote)
        if refs.len_sum_local:
            out.line(i2, "Local Refs")
            out.pair(i3, "Max", refs.len_max_local)
            out.pair(i3, "Sum", refs.len_sum_local)
        out.blank()

    def _base_object(self, out: _Lines, indent: int, base: ObjectBaseStats) -> None:
        out.pair(indent, "Total Count", base.seen)

        out.blank()
        out.line(indent, "Count by Storage Location")
        counts = base.whence_counts()
        for key, label in WHENCE_LABELS:
            if key in counts:
                out.pair(indent + 4, label, counts[key])

        out.blank()
        out.pair(indent, "Total Size in Bytes", base.sum_size)
        out.pair(indent, "Total Disk Size in Bytes", base.sum_disk_size)
        out.histogram(indent, "Histogram by Size in Bytes", "Byte Range", base.size_hist)

    def _large_items(self, out: _Lines, indent: int, vec: LargeItemVec, show_name_rev: bool) -> None:
        if not vec.enabled:
            return
        items = vec.items
        hexsz = max((len(item.oid) for item in items), default=DEFAULT_HEXSZ)

        # Trees and blobs carry a path; commits do not.
        show_name = vec.kind is not ObjectKind.COMMIT and any(item.name for item in items)
        show_rev = show_name_rev or vec.kind is not ObjectKind.COMMIT

        columns: List[Column] = [
            ("OID", "left", hexsz),
            (vec.labels_pretty.item, "right", NUMBER_WIDTH),
        ]
        if show_name:
            columns.append(("Name", "left", len("Name")))
        if show_rev:
            width = len("Commit / Name Rev") if show_name_rev else hexsz
            columns.append(("Commit / Name Rev", "left", width))

        table = ascii_table(columns)
        for item in items:
            cells = [item.oid, str(item.size)]
            if show_name:
                cells.append(Text(item.name))
            if show_rev:
                cells.append(Text(vec.display_commit(item)))
            table.add_row(*cells)

        out.blank()
        out.line(indent, vec.labels_pretty.dimension)
        out.table(indent, table)

    def _commits(self, out: _Lines, stats: SurveyStats, config: SurveyConfig, indent: int = 0) -> None:
        i1 = indent + 4
        commits = stats.commits

        out.section("COMMITS")
        self._base_object(out, i1, commits.base)
        self._large_items(out, i1, commits.largest_by_size, config.show_name_rev)

        out.blank()
        out.line(i1, "Histogram by Number of Parents")
        table = ascii_table(
            [("Parents", "left", TABLE_WIDTH - i1), ("Count", "right", NUMBER_WIDTH)]
        )
        for nr, count in enumerate(commits.parent_hist):
            if count:
                table.add_row(f"{nr:>2}", str(count))
        out.table(i1, table)

        self._large_items(out, i1, commits.largest_by_nr_parents, config.show_name_rev)
        out.blank()

    def _trees(self, out: _Lines, stats: SurveyStats, config: SurveyConfig, indent: int = 0) -> None:
        i1 = indent + 4
        trees = stats.trees

        out.section("TREES")
        self._base_object(out, i1, trees.base)
        self._large_items(out, i1, trees.largest_by_size, config.show_name_rev)
        out.histogram(i1, "Tree Histogram by Number of Entries", "Entry Range", trees.entry_hist)
        self._large_items(out, i1, trees.largest_by_nr_entries, config.show_name_rev)
        out.blank()

    def _blobs(self, out: _Lines, stats: SurveyStats, config: SurveyConfig, indent: int = 0) -> None:
        i1 = indent + 4
        out.section("BLOBS")
        self._base_object(out, i1, stats.blobs.base)
        self._large_items(out, i1, stats.blobs.largest_by_size, config.show_name_rev)
        out.blank()
