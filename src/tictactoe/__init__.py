"""Tic-Tac-Toe package exposing game logic, the computer opponent, and the web application."""

from .ai import HeuristicAI
from .game import Board, Move, Player, TicTacToeGame
from .ui import app

__all__ = ["Board", "HeuristicAI", "Move", "Player", "TicTacToeGame", "app"]
