import pytest

import modules.store


@pytest.fixture
def state_dir(tmp_path, monkeypatch):
    """Point config.json and the credentials file at a temp directory."""
    monkeypatch.setattr(modules.store, "CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.setattr(modules.store, "CREDENTIALS_FILE", tmp_path / "credentials.json")
    return tmp_path


class FakeClient:
    """Stands in for CuesClient; records calls and replays canned bodies."""

    def __init__(self, responses=None, token=None):
        self.responses = responses or {}
        self.token = token
        self.calls = []

    def _reply(self, name, *args):
        self.calls.append((name, args))
        return self.responses.get(name, {"message": f"no stub for {name}"})

    def get_projects(self):
        return self._reply("get_projects")

    def get_project(self, pid):
        return self._reply("get_project", pid)

    def create_project(self, payload):
        return self._reply("create_project", payload)

    def get_tasks(self):
        return self._reply("get_tasks")

    def create_task(self, payload):
        return self._reply("create_task", payload)

    def update_task(self, tid, payload):
        return self._reply("update_task", tid, payload)

    def delete_task(self, tid):
        return self._reply("delete_task", tid)

    def get_user(self):
        return self._reply("get_user")

    def login(self, payload):
        return self._reply("login", payload)

    def refresh(self, refresh_token):
        return self._reply("refresh", refresh_token)


@pytest.fixture
def fake_client(monkeypatch):
    """Install a FakeClient for every CuesClient() the CLI builds."""
    import main

    client = FakeClient()
    monkeypatch.setattr(main, "CuesClient", lambda *a, **kw: client)
    return client
