"""Core rules and turn handling for single-player Tic-Tac-Toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from typing import List, Optional, Protocol, Set, Tuple
import logging

logger = logging.getLogger(__name__)

BOARD_SIZE = 9
CENTER = 4

WIN_PATTERNS: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

# ((a, b), c): owning a and b leaves c as the cell that completes the line.
NEAR_WIN_PATTERNS: Tuple[Tuple[Tuple[int, int], int], ...] = tuple(
    (pair, next(i for i in line if i not in pair))
    for line in WIN_PATTERNS
    for pair in combinations(line, 2)
)


class Player(str, Enum):
    HUMAN = "human"
    COMPUTER = "computer"

    @property
    def mark(self) -> str:
        return "O" if self is Player.HUMAN else "X"

    @property
    def opponent(self) -> "Player":
        return Player.COMPUTER if self is Player.HUMAN else Player.HUMAN


class Status(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    DRAW = "draw"


@dataclass(frozen=True)
class Move:
    player: Player
    index: int


@dataclass(frozen=True)
class Outcome:
    status: Status
    winner: Optional[Player] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not Status.IN_PROGRESS


CONTINUE = Outcome(Status.IN_PROGRESS)
DRAW = Outcome(Status.DRAW)


def is_valid_index(index: int) -> bool:
    return 0 <= index < BOARD_SIZE


# ---------- Board ----------


@dataclass
class Board:
    slots: List[Optional[Move]] = field(
        default_factory=lambda: [None] * BOARD_SIZE
    )

    def is_occupied(self, index: int) -> bool:
        if not is_valid_index(index):
            raise IndexError(f"Cell index {index} is off the board")
        return self.slots[index] is not None

    def is_draw(self) -> bool:
        """True when every slot is filled; check ``has_win`` first."""
        return all(slot is not None for slot in self.slots)

    def cells_of(self, player: Player) -> Set[int]:
        return {
            slot.index
            for slot in self.slots
            if slot is not None and slot.player is player
        }

    def has_win(self, player: Player) -> bool:
        return self.winning_pattern(player) is not None

    def winning_pattern(self, player: Player) -> Optional[Tuple[int, int, int]]:
        owned = self.cells_of(player)
        for pattern in WIN_PATTERNS:
            if owned.issuperset(pattern):
                return pattern
        return None

    def empty_cells(self) -> List[int]:
        return [i for i, slot in enumerate(self.slots) if slot is None]

    def place(self, move: Move) -> bool:
        """Fill the move's slot. Invalid or occupied cells leave the board as is."""
        if not is_valid_index(move.index) or self.is_occupied(move.index):
            return False
        self.slots[move.index] = move
        return True

    def marks(self) -> List[str]:
        return [slot.player.mark if slot else "" for slot in self.slots]

    def clone(self) -> "Board":
        return Board(slots=self.slots.copy())


@dataclass(frozen=True)
class TurnResult:
    board: Board
    outcome: Outcome
    # Cell that was played; None when the call was ignored
    index: Optional[int] = None

    @property
    def accepted(self) -> bool:
        return self.index is not None


# ---------- Game ----------


class MoveStrategy(Protocol):
    def choose(self, board: Board) -> int: ...


@dataclass
class TicTacToeGame:
    """Turn state machine: human and computer alternate until a win or a draw.

    The human opens the first round; every restart hands the opening move
    to the other player.
    """

    ai: MoveStrategy
    board: Board = field(default_factory=Board)
    first_player: Player = Player.HUMAN
    current_player: Player = Player.HUMAN
    outcome: Outcome = CONTINUE
    history: List[Move] = field(default_factory=list)

    # ---- state queries ----

    @property
    def status(self) -> Status:
        return self.outcome.status

    @property
    def winner(self) -> Optional[Player]:
        return self.outcome.winner

    @property
    def is_terminal(self) -> bool:
        return self.outcome.is_terminal

    # ---- API used by the controller ----

    def apply_human_move(self, index: int) -> TurnResult:
        return self._play(Player.HUMAN, index)

    def computer_turn(self) -> TurnResult:
        if self.is_terminal or self.current_player is not Player.COMPUTER:
            return self._ignored(Player.COMPUTER, None)
        index = self.ai.choose(self.board)
        return self._play(Player.COMPUTER, index)

    def restart(self) -> Player:
        """Clear the board and return the player who opens the new round."""
        self.board = Board()
        self.history = []
        self.outcome = CONTINUE
        self.first_player = self.first_player.opponent
        self.current_player = self.first_player
        return self.first_player

    # ---- helpers ----

    def _play(self, player: Player, index: int) -> TurnResult:
        if self.is_terminal or self.current_player is not player:
            return self._ignored(player, index)
        move = Move(player=player, index=index)
        if not self.board.place(move):
            return self._ignored(player, index)
        self.history.append(move)
        self.outcome = self._evaluate(player)
        if not self.outcome.is_terminal:
            self.current_player = player.opponent
        return TurnResult(board=self.board, outcome=self.outcome, index=index)

    def _evaluate(self, player: Player) -> Outcome:
        # The mover is the only one who can have just completed a line
        if self.board.has_win(player):
            return Outcome(Status.WON, player)
        if self.board.is_draw():
            return DRAW
        return CONTINUE

    def _ignored(self, player: Player, index: Optional[int]) -> TurnResult:
        logger.debug(
            "Ignoring %s move at %s (status=%s, to move=%s)",
            player.value,
            index,
            self.status.value,
            self.current_player.value,
        )
        return TurnResult(board=self.board, outcome=self.outcome)
