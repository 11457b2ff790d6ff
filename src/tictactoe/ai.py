"""Layered heuristic opponent: win, block, center, then random."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
import random

from .game import CENTER, NEAR_WIN_PATTERNS, Board, Player


def random_move(board: Board, rng: Optional[random.Random] = None) -> int:
    """Pick uniformly among the empty cells."""
    empty = board.empty_cells()
    if not empty:
        raise ValueError("No empty cells left on the board")
    return (rng or random).choice(empty)


def completing_cell(board: Board, player: Player) -> Optional[int]:
    """Lowest empty cell that would complete a line for ``player``."""
    owned = board.cells_of(player)
    candidates = [
        target
        for (a, b), target in NEAR_WIN_PATTERNS
        if a in owned and b in owned and not board.is_occupied(target)
    ]
    return min(candidates) if candidates else None


@dataclass
class HeuristicAI:
    """Computer opponent that never looks further than one move ahead.

    Public surface used by the game:
      - HeuristicAI(player=Player.COMPUTER, rng=random.Random(seed))
      - choose(board) -> cell_index
    """

    player: Player = Player.COMPUTER
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, board: Board) -> int:
        # 1) Finish our own line
        index = completing_cell(board, self.player)
        if index is not None:
            return index

        # 2) Stop the opponent from finishing theirs
        index = completing_cell(board, self.player.opponent)
        if index is not None:
            return index

        # 3) Center
        if not board.is_occupied(CENTER):
            return CENTER

        return random_move(board, self.rng)
