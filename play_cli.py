"""
CLI play mode for the squad game.

Connects to a match server, draws the board in ASCII with the local
squad's field of vision, and takes orders as text commands.

Usage: python play_cli.py [ws://host:port/game[/<game_id>]]
"""

import sys

from client import GameClient
from models import MoveTo, Nothing, ProtocolError, TurnLeft, TurnRight
from state import load_config

FACING_CHAR = {
    "Up": "^",
    "Down": "v",
    "Left": "<",
    "Right": ">",
}

HELP = """Commands:
  click <row> <col>        - click a square (select an agent or pick its destination)
  select <agent>           - select agent 0-9
  move <agent> <row> <col> - move an agent inside its vision cone
  turn <agent> left|right  - rotate an agent
  hold <agent>             - clear an agent's order
  submit                   - send this turn's orders
  show                     - redraw the board
  log                      - print the session event log
  quit                     - leave the match"""


# ---------------------------------------------------------------------------
# ASCII Renderer
# ---------------------------------------------------------------------------


def render_board(view: dict) -> str:
    """Render a player view as text, one character per square."""
    if view["board"] is None:
        return "(waiting for the match to start)"

    display = {}
    for r, row in enumerate(view["board"]):
        for c, square in enumerate(row):
            display[(r, c)] = "#" if square == "Block" else "."

    for r, c in view["vision"]:
        if display[(r, c)] == ".":
            display[(r, c)] = ":"

    if view["pending_moves"]:
        for move in view["pending_moves"]:
            if isinstance(move, dict):
                display[tuple(move["Move"])] = "*"

    for r, c in view["visible_opponents"]:
        display[(r, c)] = "X"

    for agent in view["agents"]:
        r, c = agent["position"]
        display[(r, c)] = FACING_CHAR[agent["direction"]]

    size = len(view["board"])
    lines = ["    " + "".join(f"{c % 10}" for c in range(size))]
    for r in range(size):
        lines.append(f"{r:>3} " + "".join(display[(r, c)] for c in range(size)))
    return "\n".join(lines)


def show_status(view: dict) -> None:
    """Show phase, the board, and the order queued for every agent."""
    print(f"\n=== ROUND {view['round'] + 1} ({view['phase']}) ===")
    if view["game_id"]:
        print(f"  Game ID: {view['game_id']}")
    print(render_board(view))

    if view["pending_moves"] is None:
        print("  Waiting for the opponent's move.")
        return

    print("Your agents:")
    for agent, move in zip(view["agents"], view["pending_moves"]):
        marker = ">" if agent["index"] == view["selected_agent"] else " "
        order = move if isinstance(move, str) else f"Move to {tuple(move['Move'])}"
        r, c = agent["position"]
        print(f" {marker}{agent['index']}  at ({r},{c}) facing {agent['direction']:<5}  {order}")
    if view["submitted"]:
        print("  Orders sent, waiting for the round result.")


# ---------------------------------------------------------------------------
# Command Loop
# ---------------------------------------------------------------------------


def run_command(client: GameClient, raw: str) -> bool:
    """Apply one command. Returns False when the player quits."""
    session = client.session
    tokens = raw.split()
    cmd = tokens[0]

    try:
        if cmd == "quit":
            return False
        elif cmd == "help":
            print(HELP)
        elif cmd == "show":
            show_status(session.view())
        elif cmd == "log":
            for entry in session.log():
                print(f"  {entry}")
        elif cmd == "click":
            outcome = session.click((int(tokens[1]), int(tokens[2])))
            print(f"  {outcome.value}")
            show_status(session.view())
        elif cmd == "select":
            if not session.select_agent(int(tokens[1])):
                print("  Not your turn.")
        elif cmd == "move":
            if not session.set_action(int(tokens[1]), MoveTo(int(tokens[2]), int(tokens[3]))):
                print("  Can't move there.")
            show_status(session.view())
        elif cmd == "turn":
            action = {"left": TurnLeft(), "right": TurnRight()}.get(tokens[2])
            if action is None:
                print("  Usage: turn <agent> left|right")
            elif not session.set_action(int(tokens[1]), action):
                print("  Not your turn.")
        elif cmd == "hold":
            if not session.set_action(int(tokens[1]), Nothing()):
                print("  Not your turn.")
        elif cmd == "submit":
            if session.view()["pending_moves"] is None:
                print("  Not your turn.")
            elif session.submit() is None:
                print("  Orders already sent.")
            else:
                print("  Orders sent.")
        else:
            print(f"  Unknown command: {cmd}")
    except (IndexError, ValueError):
        print(f"  Bad arguments for {cmd}. Type 'help' for usage.")
    except ProtocolError as e:
        print(f"  Error: {e}")

    return True


def main():
    url = sys.argv[1] if len(sys.argv) > 1 else load_config()["server_url"]
    print(f"Connecting to {url}...")

    client = GameClient(url, on_ended=lambda: print("\nConnection closed. Match over."))
    client.connect()
    client.start()
    print(HELP)

    try:
        while client.session.view()["phase"] != "Ended":
            raw = input("> ").strip().lower()
            if not raw:
                continue
            if not run_command(client, raw):
                break
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        client.close()


if __name__ == "__main__":
    main()
