#!/usr/bin/env python3
"""
Row-linked placement structure for detailed placement.

Every cell occupies `height` consecutive rows starting at `row`. For each
(cell, row) pair, called a row-slot, a flat neighbour table stores the
[previous, next] cells in that row, None marking a row end. Each row also
records its first and last cell. The structure is built once from the rows
produced by the rough legalizer and mutated in place by the optimizers,
which call selfcheck() after every pass.
"""

from typing import List, Optional, Tuple


class PlacementInvariantError(RuntimeError):
    """A placement invariant or an optimizer precondition does not hold."""

    def __init__(self, violations):
        if isinstance(violations, str):
            violations = [violations]
        self.violations = list(violations)
        super().__init__(
            "Placement invariant violated:\n  " + "\n  ".join(self.violations)
        )


class PlacementCell:
    """Geometry of a placed cell. Height is a number of rows."""

    def __init__(self, width: int, height: int, row: int, x: int, y: int,
                 x_orientation: bool = True, y_orientation: bool = True):
        self.width = width
        self.height = height
        self.row = row
        self.x = x
        self.y = y
        # True when the cell is not mirrored along that axis
        self.x_orientation = x_orientation
        self.y_orientation = y_orientation
        self.neighbours_begin = 0

    def __repr__(self):
        return (f"PlacementCell(width={self.width}, height={self.height}, row={self.row}, "
                f"x={self.x}, y={self.y})")


class DetailedPlacement:
    """
    Cells in rows with their left/right neighbours in every row they occupy.

    Args:
        cells: Placed cells, indexed like the netlist cells
        rows: For each row, the indices of the cells it contains, left to right
        min_x, max_x: Horizontal bounds of the placement region
        y_origin: y coordinate of row 0
        row_count: Number of rows
        row_height: Height of a row

    Raises:
        PlacementInvariantError: the rows do not describe a legal placement
    """

    def __init__(self, cells: List[PlacementCell], rows: List[List[int]],
                 min_x: int, max_x: int, y_origin: int,
                 row_count: int, row_height: int):
        errors = []
        if row_height <= 0:
            errors.append(f"Row height must be positive (got {row_height})")
        if min_x >= max_x:
            errors.append(f"Empty placement region [{min_x}, {max_x}]")
        if len(rows) != row_count:
            errors.append(f"{len(rows)} rows given for a row count of {row_count}")
        if errors:
            raise PlacementInvariantError(errors)

        self.cells = list(cells)
        self.min_x = min_x
        self.max_x = max_x
        self.y_origin = y_origin
        self.row_height = row_height

        nbr_lims = 0
        for c in self.cells:
            c.neighbours_begin = nbr_lims
            nbr_lims += c.height

        self.neighbours: List[List[Optional[int]]] = [[None, None] for _ in range(nbr_lims)]
        self.row_first_cells: List[Optional[int]] = [None] * row_count
        self.row_last_cells: List[Optional[int]] = [None] * row_count

        # Every row-slot must be listed exactly once
        explored = [False] * nbr_lims
        for r, row in enumerate(rows):
            for c in row:
                if not 0 <= c < len(self.cells):
                    errors.append(f"Row {r} references unknown cell {c}")
                    continue
                if not self._spans(c, r):
                    cell = self.cells[c]
                    errors.append(
                        f"Cell {c} listed in row {r} but spans rows "
                        f"{cell.row}..{cell.row + cell.height - 1}"
                    )
                    continue
                ind = self.neighbour_index(c, r)
                if explored[ind]:
                    errors.append(f"Cell {c} listed twice in row {r}")
                explored[ind] = True
        for i, c in enumerate(self.cells):
            for l in range(c.height):
                if not explored[c.neighbours_begin + l]:
                    errors.append(f"Row {c.row + l} of cell {i} is not listed in any row")
        if errors:
            raise PlacementInvariantError(errors)

        for r, row in enumerate(rows):
            if row:
                self.row_first_cells[r] = row[0]
                self.row_last_cells[r] = row[-1]
            for c1, c2 in zip(row, row[1:]):
                self.neighbours[self.neighbour_index(c1, r)][1] = c2
                self.neighbours[self.neighbour_index(c2, r)][0] = c1
                cell1, cell2 = self.cells[c1], self.cells[c2]
                if cell1.x + cell1.width > cell2.x:
                    errors.append(
                        f"Cells {c1} and {c2} overlap in row {r} "
                        f"({cell1.x}+{cell1.width} > {cell2.x})"
                    )
        if errors:
            raise PlacementInvariantError(errors)

        self.selfcheck()

    # ------------------------------------------------------------------
    # Basic queries
    # ------------------------------------------------------------------

    def cell_cnt(self) -> int:
        return len(self.cells)

    def row_cnt(self) -> int:
        return len(self.row_first_cells)

    def cell_height(self, c: int) -> int:
        return self.cells[c].height

    def row_y(self, r: int) -> int:
        return self.y_origin + r * self.row_height

    def _spans(self, c: int, r: int) -> bool:
        cell = self.cells[c]
        return cell.row <= r < cell.row + cell.height

    def neighbour_index(self, c: int, r: int) -> int:
        """Index in the neighbour table of the slot of cell c in row r."""
        cell = self.cells[c]
        return cell.neighbours_begin + r - cell.row

    def neighbours_of(self, c: int, r: int) -> Tuple[Optional[int], Optional[int]]:
        """(previous, next) cells of c in row r."""
        if not self._spans(c, r):
            raise ValueError(f"Cell {c} does not occupy row {r}")
        prev_c, next_c = self.neighbours[self.neighbour_index(c, r)]
        return prev_c, next_c

    def row_cells(self, r: int) -> List[int]:
        """Cells of row r from left to right, following the neighbour links."""
        ret = []
        c = self.row_first_cells[r]
        while c is not None:
            ret.append(c)
            if len(ret) > len(self.cells):
                raise PlacementInvariantError(f"Row {r} contains a cycle")
            c = self.neighbours[self.neighbour_index(c, r)][1]
        return ret

    # ------------------------------------------------------------------
    # Traversal of single-row cells
    # ------------------------------------------------------------------

    def first_standard_cell(self, r: int, c: Optional[int]) -> Optional[int]:
        """First single-row cell of row r at or after c."""
        while c is not None and self.cells[c].height != 1:
            c = self.neighbours[self.neighbour_index(c, r)][1]
        return c

    def first_cell_on_row(self, r: int) -> Optional[int]:
        return self.first_standard_cell(r, self.row_first_cells[r])

    def next_cell_on_row(self, c: int) -> Optional[int]:
        """Next single-row cell after the single-row cell c."""
        cell = self.cells[c]
        if cell.height != 1:
            raise PlacementInvariantError(f"Cell {c} spans {cell.height} rows")
        next_c = self.neighbours[cell.neighbours_begin][1]
        return self.first_standard_cell(cell.row, next_c)

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def check_invariants(self) -> List[str]:
        """Describe every violated invariant; an empty list means consistent."""
        violations = []
        row_cnt = self.row_cnt()
        if len(self.row_first_cells) != len(self.row_last_cells):
            violations.append("Row first and last cell tables differ in size")

        # Row ends must be cells of the row without a neighbour on that side
        for r, (first, last) in enumerate(zip(self.row_first_cells, self.row_last_cells)):
            if (first is None) != (last is None):
                violations.append(f"Row {r} has first cell {first} but last cell {last}")
            for c, side, name in ((first, 0, "first"), (last, 1, "last")):
                if c is None:
                    continue
                if not 0 <= c < len(self.cells) or not self._spans(c, r):
                    violations.append(f"The {name} cell {c} of row {r} does not occupy that row")
                elif self.neighbours[self.neighbour_index(c, r)][side] is not None:
                    violations.append(f"The {name} cell {c} of row {r} is not at the row end")

        for i, c in enumerate(self.cells):
            if c.row < 0 or c.row + c.height > row_cnt:
                violations.append(
                    f"Cell {i} spans rows {c.row}..{c.row + c.height - 1} out of {row_cnt}"
                )
                continue
            for l in range(c.height):
                r = c.row + l
                prev_c, next_c = self.neighbours[c.neighbours_begin + l]

                if prev_c is not None:
                    oc = self.cells[prev_c]
                    if c.x < oc.x + oc.width:
                        violations.append(f"Cell {i} overlaps its predecessor {prev_c} in row {r}")
                    if not self._spans(prev_c, r) or self.neighbours[self.neighbour_index(prev_c, r)][1] != i:
                        violations.append(f"Predecessor {prev_c} of cell {i} in row {r} does not link back")
                else:
                    if self.row_first_cells[r] != i:
                        violations.append(
                            f"Cell {i} has no predecessor in row {r} but the row starts "
                            f"with {self.row_first_cells[r]}"
                        )
                    if c.x < self.min_x:
                        violations.append(f"Cell {i} starts at {c.x}, before the region start {self.min_x}")

                if next_c is not None:
                    oc = self.cells[next_c]
                    if c.x + c.width > oc.x:
                        violations.append(f"Cell {i} overlaps its successor {next_c} in row {r}")
                    if not self._spans(next_c, r) or self.neighbours[self.neighbour_index(next_c, r)][0] != i:
                        violations.append(f"Successor {next_c} of cell {i} in row {r} does not link back")
                else:
                    if self.row_last_cells[r] != i:
                        violations.append(
                            f"Cell {i} has no successor in row {r} but the row ends "
                            f"with {self.row_last_cells[r]}"
                        )
                    if c.x + c.width > self.max_x:
                        violations.append(
                            f"Cell {i} ends at {c.x + c.width}, after the region end {self.max_x}"
                        )
        return violations

    def selfcheck(self):
        """Raise PlacementInvariantError if any invariant is violated."""
        violations = self.check_invariants()
        if violations:
            raise PlacementInvariantError(violations)

    # ------------------------------------------------------------------
    # Structural mutations
    # ------------------------------------------------------------------

    def swap_cells(self, c1: int, c2: int):
        """
        Exchange the row-slots of two single-row cells in different rows.

        Neighbour links, row first/last cells and the row indices are updated;
        the caller sets the new coordinates.
        """
        cell1, cell2 = self.cells[c1], self.cells[c2]
        if cell1.height != 1 or cell2.height != 1:
            raise PlacementInvariantError(f"Only single-row cells can be swapped ({c1}, {c2})")
        row1, row2 = cell1.row, cell2.row
        if row1 == row2:
            raise PlacementInvariantError(f"Cells {c1} and {c2} are both in row {row1}")

        b1, a1 = self.neighbours[cell1.neighbours_begin]
        b2, a2 = self.neighbours[cell2.neighbours_begin]

        self.neighbours[cell1.neighbours_begin], self.neighbours[cell2.neighbours_begin] = \
            self.neighbours[cell2.neighbours_begin], self.neighbours[cell1.neighbours_begin]

        if b1 is not None:
            self.neighbours[self.neighbour_index(b1, row1)][1] = c2
        else:
            self.row_first_cells[row1] = c2
        if b2 is not None:
            self.neighbours[self.neighbour_index(b2, row2)][1] = c1
        else:
            self.row_first_cells[row2] = c1
        if a1 is not None:
            self.neighbours[self.neighbour_index(a1, row1)][0] = c2
        else:
            self.row_last_cells[row1] = c2
        if a2 is not None:
            self.neighbours[self.neighbour_index(a2, row2)][0] = c1
        else:
            self.row_last_cells[row2] = c1

        cell1.row, cell2.row = row2, row1

    def reorder_run(self, r: int, cells: List[int],
                    before: Optional[int], after: Optional[int]):
        """
        Relink a contiguous run of cells of row r in a new left-to-right order.

        Args:
            r: Row of the run
            cells: Cells of the run in their new order
            before: Cell left of the run (None at the row start)
            after: Cell right of the run (None at the row end)
        """
        if not cells:
            raise PlacementInvariantError(f"Empty run in row {r}")
        for c in cells:
            if not self._spans(c, r):
                raise PlacementInvariantError(f"Cell {c} of the run is not in row {r}")

        for i, c in enumerate(cells):
            slot = self.neighbours[self.neighbour_index(c, r)]
            slot[0] = cells[i - 1] if i > 0 else before
            slot[1] = cells[i + 1] if i + 1 < len(cells) else after

        if before is not None:
            self.neighbours[self.neighbour_index(before, r)][1] = cells[0]
        else:
            self.row_first_cells[r] = cells[0]
        if after is not None:
            self.neighbours[self.neighbour_index(after, r)][0] = cells[-1]
        else:
            self.row_last_cells[r] = cells[-1]
