"""
Flask REST API for KeyCalc
Exposes calculator sessions as JSON endpoints, one key press at a time
"""
import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

import config
from calculator import Calculator, CalculatorError
from session_manager import SessionManager, SessionNotFoundError

logger = logging.getLogger("keycalc.api")

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = config.MAX_REQUEST_BYTES
CORS(app)  # Enable CORS for all routes

# Initialize components
session_manager = SessionManager()


def _read_keys():
    """Pull the key(s) to press out of the request body"""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    if isinstance(body.get('key'), str):
        return [body['key']]
    if isinstance(body.get('keys'), str):
        return body['keys']
    raise ValueError("Provide 'key' (one key) or 'keys' (a string of keys)")


@app.errorhandler(SessionNotFoundError)
def handle_unknown_session(e):
    return jsonify({'success': False, 'error': str(e)}), 404


@app.errorhandler(CalculatorError)
def handle_calculator_error(e):
    logger.warning("rejected key press: %s", e)
    return jsonify({'success': False, 'error': str(e)}), 400


@app.errorhandler(413)
def handle_too_large(e):
    return jsonify({'success': False, 'error': f"Request body exceeds {config.MAX_REQUEST_BYTES} bytes"}), 413


@app.route('/api')
def api_info():
    """API information page"""
    return f"""
    <html>
    <head><title>KeyCalc API</title></head>
    <body style="font-family: Arial; padding: 40px; background: #1a1a2e; color: white;">
        <h1>{config.APP_NAME} API</h1>
        <p>Version {config.VERSION}</p>
        <h2>Available Endpoints:</h2>
        <ul>
            <li>GET /api/health - Server status</li>
            <li>POST /api/sessions - Open a calculator session</li>
            <li>GET /api/sessions - List open sessions</li>
            <li>GET /api/sessions/&lt;id&gt; - Current display of a session</li>
            <li>POST /api/sessions/&lt;id&gt;/keys - Press keys, body {{"key": "5"}} or {{"keys": "2+3*4="}}</li>
            <li>POST /api/sessions/&lt;id&gt;/clear - Reset a session to 0</li>
            <li>DELETE /api/sessions/&lt;id&gt; - Close a session</li>
            <li>POST /api/evaluate - Run keys in a one-off session</li>
        </ul>
    </body>
    </html>
    """


@app.route('/api/health')
def health():
    return jsonify({'status': 'ok', 'sessions': session_manager.count()})


@app.route('/api/sessions', methods=['POST'])
def create_session():
    """Open a new calculator session"""
    session_id = session_manager.create_session()
    return jsonify({'success': True, 'data': session_manager.describe(session_id)}), 201


@app.route('/api/sessions', methods=['GET'])
def list_sessions():
    """List open session ids"""
    return jsonify({'success': True, 'data': session_manager.list_sessions()})


@app.route('/api/sessions/<session_id>', methods=['GET'])
def get_session(session_id):
    """Get the display and stack of a session"""
    return jsonify({'success': True, 'data': session_manager.describe(session_id)})


@app.route('/api/sessions/<session_id>/keys', methods=['POST'])
def press_keys(session_id):
    """Press one or more keys in a session"""
    session_manager.describe(session_id)  # unknown session is a 404 before any body check
    try:
        keys = _read_keys()
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    return jsonify({'success': True, 'data': session_manager.press_sequence(session_id, keys)})


@app.route('/api/sessions/<session_id>/clear', methods=['POST'])
def clear_session(session_id):
    """Reset a session to 0"""
    return jsonify({'success': True, 'data': session_manager.clear_session(session_id)})


@app.route('/api/sessions/<session_id>', methods=['DELETE'])
def delete_session(session_id):
    """Close a session"""
    session_manager.delete_session(session_id)
    return jsonify({'success': True, 'data': {'session_id': session_id}})


@app.route('/api/evaluate', methods=['POST'])
def evaluate():
    """Press keys in a throwaway session and return the final display"""
    try:
        keys = _read_keys()
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    calculator = Calculator()
    display = calculator.press_sequence(keys)
    return jsonify({'success': True, 'data': {'display': display, 'stack': calculator.get_stack()}})


if __name__ == '__main__':
    print("\n" + "="*60)
    print("KeyCalc API Server")
    print("="*60)
    print(f"Server starting on http://{config.WEB_HOST}:{config.WEB_PORT}")
    print(f"Access from this device: http://localhost:{config.WEB_PORT}/api")
    print("="*60 + "\n")

    app.run(host=config.WEB_HOST, port=config.WEB_PORT, debug=False)
