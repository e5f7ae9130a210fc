from flask import Flask, request, jsonify
from flask_cors import CORS
from client import GameClient, GameSession
from models import ProtocolError
from protocol import decode_action
from state import load_config


def _read_int(data, key):
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f'{key} must be an integer')
    return value


def create_app(session: GameSession) -> Flask:
    """Create the renderer bridge for a game session."""
    app = Flask(__name__)
    CORS(app)  # Renderer may be served from another origin

    @app.route('/api/state', methods=['GET'])
    def get_state():
        """Retrieve the player view of the current match."""
        try:
            return jsonify(session.view())
        except Exception as e:
            return jsonify({'error': f'Failed to retrieve state: {str(e)}'}), 500

    @app.route('/api/click', methods=['POST'])
    def click():
        """Apply a board click, given as a grid cell."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400
        try:
            cell = (_read_int(data, 'row'), _read_int(data, 'col'))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        try:
            outcome = session.click(cell)
            return jsonify({'outcome': outcome.value, 'state': session.view()})
        except Exception as e:
            return jsonify({'error': f'Failed to apply click: {str(e)}'}), 500

    @app.route('/api/select', methods=['POST'])
    def select():
        """Select an agent by roster index."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400
        try:
            index = _read_int(data, 'index')
            changed = session.select_agent(index)
        except (ValueError, IndexError) as e:
            return jsonify({'error': str(e)}), 400
        return jsonify({'changed': changed, 'state': session.view()})

    @app.route('/api/action', methods=['POST'])
    def set_action():
        """Queue an action for one agent."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid JSON data'}), 400
        if 'action' not in data:
            return jsonify({'error': 'Request must have index and action fields'}), 400
        try:
            index = _read_int(data, 'index')
            action = decode_action(data['action'])
            changed = session.set_action(index, action)
        except (ValueError, IndexError, ProtocolError) as e:
            return jsonify({'error': str(e)}), 400
        return jsonify({'changed': changed, 'state': session.view()})

    @app.route('/api/submit', methods=['POST'])
    def submit():
        """Submit the pending moves to the match server."""
        try:
            payload = session.submit()
        except ProtocolError as e:
            return jsonify({'error': str(e)}), 409
        except Exception as e:
            return jsonify({'error': f'Failed to submit moves: {str(e)}'}), 500
        return jsonify({'submitted': payload is not None, 'moves': payload['moves'] if payload else None})

    @app.route('/api/log', methods=['GET'])
    def get_log():
        """Retrieve the session event log."""
        view = session.view()
        return jsonify({'phase': view['phase'], 'round': view['round'], 'log': session.log()})

    return app


if __name__ == '__main__':
    config = load_config()
    game_client = GameClient(config['server_url'], on_ended=lambda: print('Disconnected from match server'))
    game_client.connect()
    game_client.start()
    create_app(game_client.session).run(host=config['bridge_host'], port=config['bridge_port'])
