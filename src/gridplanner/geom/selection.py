"""Cell selection helpers for drafting rooms and stairs.

A draft is an immutable set of :class:`GridPoint` cells. Dragging a
rectangle toggles its cells in or out of the draft, so dragging over an
already selected area subtracts it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional

from ..core.model import GridPoint


@dataclass(frozen=True)
class CellBounds:
    """Inclusive cell extents of a non-empty cell set."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1


def format_cell_key(cell: GridPoint) -> str:
    """Wire form of a cell key, ``"x,y"``."""
    return f"{cell.x},{cell.y}"


def parse_cell_key(key: str) -> GridPoint:
    """Parse a ``"x,y"`` cell key.

    Raises:
        ValueError: If the key is not two comma-separated integers.
    """
    parts = key.split(",")
    if len(parts) != 2:
        raise ValueError(f"Invalid cell key: {key!r}")
    return GridPoint(int(parts[0]), int(parts[1]))


def rect_cells_between(a: GridPoint, b: GridPoint) -> List[GridPoint]:
    """Return every cell in the inclusive rectangle spanned by two corners.

    The result does not depend on which corner comes first. Cells are listed
    row by row.
    """
    min_x, max_x = min(a.x, b.x), max(a.x, b.x)
    min_y, max_y = min(a.y, b.y), max(a.y, b.y)
    return [
        GridPoint(x, y)
        for y in range(min_y, max_y + 1)
        for x in range(min_x, max_x + 1)
    ]


def xor_toggle(
    draft: FrozenSet[GridPoint], rect_cells: Iterable[GridPoint]
) -> FrozenSet[GridPoint]:
    """Toggle each cell of ``rect_cells`` in ``draft``.

    Applying the same rectangle twice restores the original draft.
    """
    return frozenset(draft).symmetric_difference(frozenset(rect_cells))


def cell_bounds(cells: Iterable[GridPoint]) -> Optional[CellBounds]:
    """Bounding extents of a cell set, or None when it is empty."""
    cells = list(cells)
    if not cells:
        return None
    xs = [c.x for c in cells]
    ys = [c.y for c in cells]
    return CellBounds(min(xs), min(ys), max(xs), max(ys))
