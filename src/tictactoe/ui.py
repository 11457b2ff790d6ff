"""FastAPI-powered web UI for playing Tic-Tac-Toe against the computer."""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .ai import HeuristicAI
from .game import Player, TicTacToeGame, TurnResult

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game and the controller flags around it."""

    game: TicTacToeGame
    ai: HeuristicAI
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    # Bumped on restart so stale computer turns can tell they are outdated
    round: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic Tac Toe", description="Play tic-tac-toe against the computer")


AI_THINK_DELAY: float = float(os.environ.get("TICTACTOE_THINK_DELAY", "0.5"))

RESULT_MESSAGES: Dict[Optional[Player], str] = {
    Player.HUMAN: "You won!",
    Player.COMPUTER: "You lost!",
    None: "Draw",
}


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _create_session() -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    ai = HeuristicAI(player=Player.COMPUTER)
    session = GameSession(game=TicTacToeGame(ai=ai), ai=ai)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s", session_id)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record(game_id: str, session: GameSession, result: TurnResult) -> None:
    """Append an accepted move to the log and report finished games."""

    move = session.game.history[-1]
    session.move_log.append({"player": move.player.value, "cellIndex": move.index})
    if result.outcome.is_terminal:
        logger.info(
            "Game %s finished: %s",
            game_id,
            RESULT_MESSAGES[result.outcome.winner],
        )


def _run_ai_turn(game_id: str, round_: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_THINK_DELAY))

    with session.lock:
        if session.round != round_:
            return
        try:
            result = session.game.computer_turn()
            if result.accepted:
                logger.debug("Game %s: computer played %d", game_id, result.index)
                _record(game_id, session, result)
        finally:
            session.ai_pending = False


def _schedule_ai_turn(
    game_id: str, session: GameSession, background_tasks: BackgroundTasks
) -> None:
    # Caller holds session.lock
    session.ai_pending = True
    background_tasks.add_task(_run_ai_turn, game_id, session.round)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        winner = game.winner
        state: Dict[str, object] = {
            "id": game_id,
            "cells": game.board.marks(),
            "status": game.status.value,
            "winner": winner.value if winner else None,
            "winningPattern": (
                list(game.board.winning_pattern(winner)) if winner else None
            ),
            "currentPlayer": game.current_player.value,
            "firstPlayer": game.first_player.value,
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
            "boardDisabled": game.is_terminal or session.ai_pending,
            "canRestart": game.is_terminal,
            "message": (
                RESULT_MESSAGES[winner] if game.is_terminal else ""
            ),
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: BackgroundTasks,
) -> bool:
    """Apply a human move; clicks the board would ignore return False."""

    with session.lock:
        if session.ai_pending:
            logger.debug("Game %s: move at %d while computer thinks", game_id, cell_index)
            return False

        result = session.game.apply_human_move(cell_index)
        if not result.accepted:
            return False
        _record(game_id, session, result)

        if not result.outcome.is_terminal:
            _schedule_ai_turn(game_id, session, background_tasks)
    return True


def _restart_session(
    game_id: str,
    session: GameSession,
    background_tasks: BackgroundTasks,
) -> None:
    with session.lock:
        first = session.game.restart()
        session.round += 1
        session.move_log = []
        session.ai_pending = False
        logger.info("Restarted game %s, %s moves first", game_id, first.value)
        if first is Player.COMPUTER:
            _schedule_ai_turn(game_id, session, background_tasks)


@app.post("/api/game")
def create_game() -> Dict[str, object]:
    game_id, session = _create_session()
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    accepted = _apply_player_move(
        game_id, session, request.cell_index, background_tasks
    )
    state = _serialize_session(game_id, session)
    state["accepted"] = accepted
    return state


@app.post("/api/game/{game_id}/restart")
def restart_game(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    _restart_session(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic Tac Toe</title>
    <style>
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        flex-direction: column;
        align-items: center;
        justify-content: center;
        font-family: system-ui, -apple-system, \"Segoe UI\", sans-serif;
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 96px);
        gap: 12px;
        padding: 16px;
      }
      #board.disabled { pointer-events: none; }
      .cell {
        width: 96px;
        height: 96px;
        border: none;
        border-radius: 15px;
        background: rgba(0, 122, 255, 0.5);
        color: white;
        font-size: 48px;
        cursor: pointer;
      }
      #restart {
        padding: 12px 24px;
        font-size: 1.5rem;
        color: white;
        background: #007aff;
        border: none;
        border-radius: 10px;
        opacity: 0;
        transition: opacity 0.3s ease-in-out;
      }
      #restart.visible { opacity: 1; }
    </style>
  </head>
  <body>
    <h1>Tic Tac Toe</h1>
    <div id=\"board\"></div>
    <p id=\"message\"></p>
    <button id=\"restart\" disabled>Play Again</button>
    <script>
      const boardEl = document.getElementById('board');
      const messageEl = document.getElementById('message');
      const restartButton = document.getElementById('restart');
      let gameId = null;
      let pollHandle = null;

      function render(state) {
        boardEl.innerHTML = '';
        state.cells.forEach((mark, index) => {
          const cell = document.createElement('button');
          cell.className = 'cell';
          cell.textContent = mark;
          cell.addEventListener('click', () => sendMove(index));
          boardEl.appendChild(cell);
        });
        boardEl.classList.toggle('disabled', state.boardDisabled);
        messageEl.textContent = state.message;
        restartButton.disabled = !state.canRestart;
        restartButton.classList.toggle('visible', state.canRestart);
        if (state.aiPending && pollHandle === null) {
          pollHandle = setTimeout(poll, 200);
        }
      }

      async function poll() {
        pollHandle = null;
        const response = await fetch(`/api/game/${gameId}`);
        if (response.ok) {
          render(await response.json());
        }
      }

      async function sendMove(cellIndex) {
        const response = await fetch(`/api/game/${gameId}/move`, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ cellIndex }),
        });
        if (response.ok) {
          render(await response.json());
        }
      }

      async function restart() {
        const response = await fetch(`/api/game/${gameId}/restart`, { method: 'POST' });
        if (response.ok) {
          render(await response.json());
        }
      }

      async function start() {
        const response = await fetch('/api/game', { method: 'POST' });
        const state = await response.json();
        gameId = state.id;
        render(state);
      }

      restartButton.addEventListener('click', restart);
      start();
    </script>
  </body>
</html>
"""
