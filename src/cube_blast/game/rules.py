from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScoringRules:
    points_per_cell: int = 100

    def score_for_cells(self, cells: int) -> int:
        if cells <= 0:
            return 0
        return cells * self.points_per_cell
