"""
Lane assignment for the commit graph.
Turns a newest-first, topologically ordered commit list into per-commit
columns, colors and the lane sets a renderer needs to draw the graph.
"""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Commit:
    hash: str
    parents: tuple = ()
    message: str = ""
    author: str = ""
    date: str = ""
    refs: tuple = ()

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


@dataclass(frozen=True)
class Lane:
    """An open ancestry edge waiting to reach `target`."""
    target: str
    column: int
    color: int


@dataclass(frozen=True)
class CommitLayout:
    hash: str
    parents: tuple
    column: int
    color: int
    is_new_branch_tip: bool
    merging_from_columns: tuple
    lanes_before: tuple
    lanes_after: tuple


@dataclass(frozen=True)
class Segment:
    kind: str  # "pass", "end", "start" or "merge"
    column: int
    color: int
    to_column: Optional[int] = None


def allocate_column(used_columns: Iterable[int], max_columns: int) -> int:
    """Lowest column in [0, max_columns) not in use, else the last column."""
    used = set(used_columns)
    for column in range(max_columns):
        if column not in used:
            return column
    return max_columns - 1


def color_for_column(column: int, palette_size: int) -> int:
    return column % palette_size


def _check_config(max_columns: int, palette_size: int):
    if max_columns < 1:
        raise ValueError(f"max_columns must be >= 1, got {max_columns}")
    if palette_size < 1:
        raise ValueError(f"palette_size must be >= 1, got {palette_size}")


def advance(lanes: tuple, commit: Commit, max_columns: int, palette_size: int) -> tuple:
    """Process one commit.

    Returns (lanes_after, layout). `lanes` is not modified; the first lane
    in insertion order that targets the commit gives it its column, the
    other matching lanes are reported as merge sources.
    """
    lanes_before = tuple(lanes)
    matching = [lane for lane in lanes_before if lane.target == commit.hash]

    if matching:
        column = matching[0].column
        color = matching[0].color
        merging_from = tuple(lane.column for lane in matching[1:])
        remaining = [lane for lane in lanes_before if lane.target != commit.hash]
        new_tip = False
    else:
        column = allocate_column((lane.column for lane in lanes_before), max_columns)
        color = color_for_column(column, palette_size)
        merging_from = ()
        remaining = list(lanes_before)
        new_tip = True

    if commit.parents:
        remaining.append(Lane(commit.parents[0], column, color))
        for parent in commit.parents[1:]:
            if any(lane.target == parent for lane in remaining):
                continue
            parent_column = allocate_column((lane.column for lane in remaining), max_columns)
            remaining.append(Lane(parent, parent_column, color_for_column(parent_column, palette_size)))

    lanes_after = tuple(remaining)
    layout = CommitLayout(
        hash=commit.hash,
        parents=tuple(commit.parents),
        column=column,
        color=color,
        is_new_branch_tip=new_tip,
        merging_from_columns=merging_from,
        lanes_before=lanes_before,
        lanes_after=lanes_after,
    )
    return lanes_after, layout


def assign_layout(commits: Iterable[Commit], max_columns: int, palette_size: int) -> list:
    """Lay out the whole history in one pass.

    Lanes still open after the last commit point at ancestors outside the
    scanned window and are dropped.
    """
    _check_config(max_columns, palette_size)
    lanes = ()
    layouts = []
    for commit in commits:
        lanes, layout = advance(lanes, commit, max_columns, palette_size)
        layouts.append(layout)
    return layouts


def graph_segments(layout: CommitLayout) -> list:
    """Line segments to draw in the row of one commit."""
    before = {}
    for lane in layout.lanes_before:
        before.setdefault(lane.column, lane.color)
    after = {}
    for lane in layout.lanes_after:
        after.setdefault(lane.column, lane.color)

    segments = []
    columns = list(before) + [c for c in after if c not in before]
    for column in columns:
        color = before[column] if column in before else after[column]
        if column in before and column in after:
            segments.append(Segment("pass", column, color))
        elif column in before:
            segments.append(Segment("end", column, color))
        else:
            segments.append(Segment("start", column, color))

    for merge_column in layout.merging_from_columns:
        segments.append(Segment("merge", merge_column, before.get(merge_column, layout.color), layout.column))

    for parent in layout.parents[1:]:
        parent_lane = next((lane for lane in layout.lanes_after if lane.target == parent), None)
        if parent_lane and parent_lane.column != layout.column:
            segments.append(Segment("merge", parent_lane.column, parent_lane.color, layout.column))

    return segments


def graph_width_columns(layouts: list) -> int:
    """Number of columns the rendered graph needs, counting open lanes."""
    highest = -1
    for layout in layouts:
        highest = max(highest, layout.column, *(lane.column for lane in layout.lanes_after))
    return highest + 1
