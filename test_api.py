"""
Tests for the KeyCalc REST API and session table
"""
import pytest

import api
import config
from session_manager import SessionManager, SessionNotFoundError


@pytest.fixture
def client():
    api.app.config['TESTING'] = True
    api.session_manager.reset()
    with api.app.test_client() as client:
        yield client
    api.session_manager.reset()


@pytest.fixture
def session_id(client):
    response = client.post('/api/sessions')
    return response.get_json()['data']['session_id']


# --- SessionManager ---

def test_manager_sessions_are_independent():
    manager = SessionManager()
    first = manager.create_session()
    second = manager.create_session()
    manager.press_sequence(first, "1+")
    manager.press(second, "9")
    assert manager.press_sequence(first, "2=")['display'] == "3"
    assert manager.get_session(second).get_display() == "9"
    assert sorted(manager.list_sessions()) == sorted([first, second])


def test_manager_unknown_session():
    manager = SessionManager()
    with pytest.raises(SessionNotFoundError) as exc:
        manager.press("missing", "1")
    assert "missing" in str(exc.value)
    with pytest.raises(KeyError):
        manager.delete_session("missing")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_manager_full_table_evicts_least_recently_used():
    manager = SessionManager(max_sessions=2, clock=FakeClock())
    first = manager.create_session()
    second = manager.create_session()
    manager.press(first, "1")
    third = manager.create_session()
    assert manager.list_sessions() == [first, third]
    with pytest.raises(SessionNotFoundError):
        manager.describe(second)


def test_manager_expires_idle_sessions():
    clock = FakeClock()
    manager = SessionManager(max_sessions=10, idle_timeout=60, clock=clock)
    stale = manager.create_session()
    clock.now = 50
    active = manager.create_session()
    clock.now = 100
    fresh = manager.create_session()
    assert manager.list_sessions() == [active, fresh]
    assert stale not in manager.list_sessions()


def test_manager_never_locks_out_new_sessions():
    manager = SessionManager(max_sessions=3)
    for _ in range(10):
        manager.create_session()
    assert manager.count() == 3


def test_manager_describe_reads_display_and_stack_together():
    manager = SessionManager()
    session = manager.create_session()
    manager.press_sequence(session, "2+3*4=")
    assert manager.describe(session) == {
        'session_id': session,
        'display': "14",
        'stack': ["14", "="]
    }


def test_manager_clear_and_delete():
    manager = SessionManager()
    session = manager.create_session()
    manager.press_sequence(session, "4*5")
    assert manager.clear_session(session)['stack'] == []
    manager.delete_session(session)
    assert manager.count() == 0


# --- HTTP endpoints ---

def test_health(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.get_json() == {'status': 'ok', 'sessions': 0}


def test_info_page(client):
    response = client.get('/api')
    assert response.status_code == 200
    assert b'/api/sessions' in response.data


def test_create_session(client):
    response = client.post('/api/sessions')
    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['data']['display'] == "0"
    assert body['data']['stack'] == []


def test_press_single_key(client, session_id):
    response = client.post(f'/api/sessions/{session_id}/keys', json={'key': '7'})
    assert response.status_code == 200
    assert response.get_json()['data']['display'] == "7"


def test_press_key_string(client, session_id):
    response = client.post(f'/api/sessions/{session_id}/keys', json={'keys': '2 + 3 * 4 ='})
    data = response.get_json()['data']
    assert data['display'] == "14"
    assert data['stack'] == ["14", "="]


def test_state_persists_between_requests(client, session_id):
    client.post(f'/api/sessions/{session_id}/keys', json={'keys': '8/2'})
    response = client.post(f'/api/sessions/{session_id}/keys', json={'keys': '/2='})
    assert response.get_json()['data']['display'] == "2"

    response = client.get(f'/api/sessions/{session_id}')
    assert response.get_json()['data']['display'] == "2"


def test_division_by_zero_over_http(client, session_id):
    response = client.post(f'/api/sessions/{session_id}/keys', json={'keys': '5/0='})
    assert response.status_code == 200
    assert response.get_json()['data']['display'] == "Undefined"


def test_invalid_key_rejected(client, session_id):
    response = client.post(f'/api/sessions/{session_id}/keys', json={'key': 'x'})
    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_missing_body_rejected(client, session_id):
    response = client.post(f'/api/sessions/{session_id}/keys')
    assert response.status_code == 400
    response = client.post(f'/api/sessions/{session_id}/keys', json={'key': 5})
    assert response.status_code == 400


def test_unknown_session(client):
    response = client.post('/api/sessions/nope/keys', json={'key': '1'})
    assert response.status_code == 404
    assert client.get('/api/sessions/nope').status_code == 404
    assert client.delete('/api/sessions/nope').status_code == 404


def test_clear_session(client, session_id):
    client.post(f'/api/sessions/{session_id}/keys', json={'keys': '12+3'})
    response = client.post(f'/api/sessions/{session_id}/clear')
    data = response.get_json()['data']
    assert data['display'] == "0"
    assert data['stack'] == []


def test_delete_session(client, session_id):
    assert client.get('/api/sessions').get_json()['data'] == [session_id]
    response = client.delete(f'/api/sessions/{session_id}')
    assert response.status_code == 200
    assert client.get(f'/api/sessions/{session_id}').status_code == 404


def test_full_session_table_still_accepts_new_sessions(client, monkeypatch):
    monkeypatch.setattr(api.session_manager, 'max_sessions', 1)
    first = client.post('/api/sessions').get_json()['data']['session_id']
    response = client.post('/api/sessions')
    assert response.status_code == 201
    assert client.get(f'/api/sessions/{first}').status_code == 404


def test_oversized_body_rejected(client):
    response = client.post('/api/evaluate', json={'keys': '1' * (config.MAX_REQUEST_BYTES + 1)})
    assert response.status_code == 413
    assert response.get_json()['success'] is False


def test_evaluate_is_stateless(client):
    response = client.post('/api/evaluate', json={'keys': '999999*999999='})
    data = response.get_json()['data']
    assert data['display'] == "Error"
    assert data['stack'] == ["999998000001", "="]
    assert client.get('/api/health').get_json()['sessions'] == 0
