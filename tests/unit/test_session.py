"""Unit tests for client-local session state."""

import json
import uuid

from quickqr.client.session import SESSION_KEY, JsonFileStore, MemoryStore, load_session_id


def test_generates_and_persists_on_first_use():
    store = MemoryStore()

    session_id = load_session_id(store)

    assert uuid.UUID(session_id).version == 4
    assert store.get(SESSION_KEY) == session_id


def test_reuses_existing_identifier():
    store = MemoryStore({SESSION_KEY: 'existing-id'})
    assert load_session_id(store) == 'existing-id'
    assert load_session_id(store) == 'existing-id'


def test_file_store_survives_restart(tmp_path):
    path = tmp_path / 'nested' / 'state.json'

    first = load_session_id(JsonFileStore(path))
    second = load_session_id(JsonFileStore(path))

    assert first == second
    assert json.loads(path.read_text()) == {SESSION_KEY: first}


def test_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / 'state.json'
    path.write_text('{not json')

    session_id = load_session_id(JsonFileStore(path))

    assert json.loads(path.read_text())[SESSION_KEY] == session_id


def test_file_store_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / 'from-env.json'
    monkeypatch.setenv('QUICKQR_STATE_FILE', str(path))

    store = JsonFileStore()

    assert store.path == path


def test_file_store_keeps_other_keys(tmp_path):
    path = tmp_path / 'state.json'
    path.write_text(json.dumps({'theme': 'dark'}))

    load_session_id(JsonFileStore(path))

    assert json.loads(path.read_text())['theme'] == 'dark'
