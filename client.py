"""
Websocket transport for the squad client.

GameSession serialises every engine call behind one lock so that the
receive thread and UI threads never run the turn machine concurrently.
GameClient owns the socket and feeds decoded frames into the session.
"""

from __future__ import annotations

import json
import threading
from typing import Any, Callable, Dict, Optional

from websockets.exceptions import ConnectionClosed
from websockets.sync.client import ClientConnection, connect

from legality import ClickOutcome
from models import Action, Cell
from protocol import decode_server_message
from state import get_player_view, load_config
from turns import TurnMachine


class GameSession:
    """Single entry point into the engine for a connected match."""

    def __init__(self, send: Optional[Callable[[str], None]] = None,
                 on_ended: Optional[Callable[[], None]] = None,
                 config: Optional[Dict[str, Any]] = None):
        self.machine = TurnMachine(on_ended=on_ended, config=config)
        self.send = send
        self._lock = threading.RLock()

    def receive(self, text: str) -> None:
        """Decode and apply one inbound frame."""
        message = decode_server_message(text)
        with self._lock:
            self.machine.dispatch(message)

    def click(self, cell: Cell) -> ClickOutcome:
        with self._lock:
            return self.machine.handle_click(cell)

    def select_agent(self, index: int) -> bool:
        with self._lock:
            return self.machine.select_agent(index)

    def set_action(self, index: int, action: Action) -> bool:
        with self._lock:
            return self.machine.set_action(index, action)

    def submit(self) -> Optional[Dict[str, Any]]:
        """Submit the pending moves and hand them to the transport."""
        with self._lock:
            payload = self.machine.submit_moves()
            if payload is not None and self.send is not None:
                try:
                    self.send(json.dumps(payload))
                except Exception:
                    self.machine.cancel_submission()
                    raise
            return payload

    def disconnect(self) -> None:
        with self._lock:
            self.machine.handle_disconnect()

    def view(self) -> Dict[str, Any]:
        with self._lock:
            return get_player_view(self.machine.state)

    def log(self) -> list:
        with self._lock:
            return list(self.machine.state.log)


class GameClient:
    """
    Connects a GameSession to the match server.

    The connection is assumed to already belong to a match: the first frame
    the server sends is the Start handshake.
    """

    def __init__(self, url: Optional[str] = None,
                 on_ended: Optional[Callable[[], None]] = None):
        self.url = url or load_config()['server_url']
        self.session = GameSession(send=self._send, on_ended=on_ended)
        self._connection: Optional[ClientConnection] = None

    def _send(self, text: str) -> None:
        if self._connection is None:
            raise ConnectionError("Not connected to the match server")
        try:
            self._connection.send(text)
        except ConnectionClosed:
            self.session.machine.handle_disconnect()

    def connect(self) -> None:
        self._connection = connect(self.url)

    def run(self) -> None:
        """Receive frames until the server closes the connection."""
        if self._connection is None:
            self.connect()
        try:
            for text in self._connection:
                self.session.receive(text)
        except ConnectionClosed:
            pass
        finally:
            self._connection.close()
            self.session.disconnect()

    def start(self) -> threading.Thread:
        """Run the receive loop on a daemon thread."""
        thread = threading.Thread(target=self.run, daemon=True)
        thread.start()
        return thread

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
