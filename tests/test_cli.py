import functools
import json

import pytest
from click.testing import CliRunner

import main
from modules.auth import expiry_from_now
from modules.dates import resolve_due
from modules.store import CuesConfig, TokenStore, load_config, save_config

TASK = {
    "id": 12,
    "title": "Write report",
    "description": "Quarterly numbers",
    "due": "2025-06-13T14:00:00+00:00",
    "priority": "High",
    "projectId": 3,
    "isDone": False,
    "createdAt": "2025-06-01T10:00:00+00:00",
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def logged_in(state_dir):
    tokens = TokenStore()
    tokens.set("access_token", "a1")
    tokens.set("refresh_token", "r1")
    save_config(CuesConfig(current_project="Work", current_project_id=3, expires_at=expiry_from_now()))
    return state_dir


def test_commands_require_login(runner, state_dir, fake_client):
    result = runner.invoke(main.cli, ["projects"])
    assert result.exit_code == 0
    assert "cues login" in result.output
    assert fake_client.calls == []


def test_missing_token_prints_hint(runner, state_dir, fake_client):
    save_config(CuesConfig(expires_at=expiry_from_now()))
    result = runner.invoke(main.cli, ["tasks"])
    assert result.exit_code == 0
    assert "You may not be logged in" in result.output
    assert fake_client.calls == []


def test_projects(runner, logged_in, fake_client):
    fake_client.responses["get_projects"] = {"projects": [
        {"id": 1, "name": "Home", "userId": 9, "createdAt": ""},
        {"id": 3, "name": "Work", "userId": 9, "createdAt": ""},
    ]}
    result = runner.invoke(main.cli, ["projects"])

    assert result.exit_code == 0
    assert "Home" in result.output
    assert "[3]" in result.output
    assert fake_client.token == "a1"


def test_use_sets_active_project(runner, logged_in, fake_client):
    fake_client.responses["get_project"] = {"project": {"id": 5, "name": "Garden", "userId": 9}}
    result = runner.invoke(main.cli, ["use", "5"])

    assert result.exit_code == 0
    assert "Garden" in result.output
    config = load_config()
    assert (config.current_project_id, config.current_project) == (5, "Garden")


def test_use_reports_server_error(runner, logged_in, fake_client):
    fake_client.responses["get_project"] = {"message": "Project not found"}
    result = runner.invoke(main.cli, ["use", "42"])

    assert result.exit_code == 0
    assert "Project not found" in result.output
    assert load_config().current_project_id == 3


@pytest.mark.parametrize("name", ["cwp", "current", "active"])
def test_cwp_and_aliases(runner, logged_in, name):
    result = runner.invoke(main.cli, [name])
    assert result.exit_code == 0
    assert "Active Project" in result.output
    assert "Work" in result.output


def test_cwp_without_active_project(runner, state_dir):
    save_config(CuesConfig(expires_at=expiry_from_now()))
    result = runner.invoke(main.cli, ["cwp"])
    assert "not set any project as active" in result.output


def test_new_project(runner, logged_in, fake_client):
    fake_client.responses["create_project"] = {"project": {"id": 8, "name": "Errands", "userId": 9}}
    result = runner.invoke(main.cli, ["new", "project", "Errands"])

    assert result.exit_code == 0
    assert "Errands" in result.output
    assert fake_client.calls == [("create_project", ({"name": "Errands"},))]


def test_add_task_with_due_date(runner, logged_in, fake_client, monkeypatch):
    monkeypatch.setattr(main, "resolve_due", lambda phrase, now: "2025-06-13T14:00:00+00:00")
    fake_client.responses["create_task"] = {"task": TASK}
    result = runner.invoke(main.cli, [
        "add", "Write report", "-p", "high", "-d", "Quarterly numbers", "-u", "friday 16:00",
    ])

    assert result.exit_code == 0
    assert "Write report" in result.output
    (name, (payload,)), = fake_client.calls
    assert name == "create_task"
    assert payload == {
        "title": "Write report",
        "projectId": 3,
        "description": "Quarterly numbers",
        "due": "2025-06-13T14:00:00+00:00",
        "priority": "High",
    }


def test_add_task_resolves_real_phrase(runner, logged_in, fake_client):
    fake_client.responses["create_task"] = {"task": TASK}
    result = runner.invoke(main.cli, ["add", "Write report", "--due", "tomorrow 09:30"])

    assert result.exit_code == 0
    (_, (payload,)), = fake_client.calls
    assert payload["due"].endswith("+00:00")


def test_add_with_invalid_due_skips_request(runner, logged_in, fake_client):
    result = runner.invoke(main.cli, ["add", "Write report", "--due", "whenever 12:00"])

    assert result.exit_code == 0
    assert "Invalid due date format" in result.output
    assert fake_client.calls == []


def test_tasks_lists_active_project_only(runner, logged_in, fake_client):
    other = dict(TASK, id=13, title="Mow the lawn", projectId=1)
    fake_client.responses["get_tasks"] = {"tasks": [TASK, other]}
    result = runner.invoke(main.cli, ["tasks"])

    assert result.exit_code == 0
    assert "Write report" in result.output
    assert "Mow the lawn" not in result.output


def test_tasks_all_groups_by_project(runner, logged_in, fake_client):
    other = dict(TASK, id=13, title="Mow the lawn", projectId=1, description=None)
    fake_client.responses["get_tasks"] = {"tasks": [TASK, other]}
    fake_client.responses["get_projects"] = {"projects": [
        {"id": 1, "name": "Home"},
        {"id": 3, "name": "Work"},
        {"id": 4, "name": "Empty"},
    ]}
    result = runner.invoke(main.cli, ["tasks", "--all"])

    assert result.exit_code == 0
    assert "Home" in result.output
    assert "Mow the lawn" in result.output
    assert "Write report" in result.output
    assert "Empty" not in result.output
    assert result.output.index("Home") < result.output.index("Mow the lawn") < result.output.index("Work")


def test_tasks_empty(runner, logged_in, fake_client):
    fake_client.responses["get_tasks"] = {"tasks": []}
    result = runner.invoke(main.cli, ["tasks"])
    assert "No tasks present" in result.output


def test_done(runner, logged_in, fake_client):
    fake_client.responses["update_task"] = {"task": dict(TASK, isDone=True)}
    result = runner.invoke(main.cli, ["done", "12"])

    assert result.exit_code == 0
    assert "Marked following task as done" in result.output
    assert fake_client.calls == [("update_task", (12, {"isDone": True}))]


def test_edit_sends_only_given_fields(runner, logged_in, fake_client):
    fake_client.responses["update_task"] = {"task": dict(TASK, title="Final report")}
    result = runner.invoke(main.cli, ["edit", "12", "-t", "Final report", "-D", "false", "-p", "LOW"])

    assert result.exit_code == 0
    assert fake_client.calls == [
        ("update_task", (12, {"title": "Final report", "priority": "Low", "isDone": False})),
    ]


def test_edit_with_invalid_due_skips_request(runner, logged_in, fake_client):
    result = runner.invoke(main.cli, ["edit", "12", "-u", "today 25:99"])

    assert result.exit_code == 0
    assert "Invalid due date format" in result.output
    assert fake_client.calls == []


def test_delete_reports_server_error(runner, logged_in, fake_client):
    fake_client.responses["delete_task"] = {"error": "Forbidden"}
    result = runner.invoke(main.cli, ["delete", "12"])

    assert result.exit_code == 0
    assert "Forbidden" in result.output


def test_expired_token_is_refreshed_before_call(runner, logged_in, fake_client):
    save_config(CuesConfig(current_project="Work", current_project_id=3, expires_at="2000-01-01T00:00:00+00:00"))
    fake_client.responses["refresh"] = {"accessToken": "a2"}
    fake_client.responses["get_tasks"] = {"tasks": []}
    result = runner.invoke(main.cli, ["tasks"])

    assert result.exit_code == 0
    assert [name for name, _ in fake_client.calls] == ["refresh", "get_tasks"]
    assert fake_client.token == "a2"
    assert TokenStore().get("access_token") == "a2"


def test_failed_refresh_exits_with_error(runner, logged_in, fake_client):
    save_config(CuesConfig(current_project="Work", current_project_id=3, expires_at=""))
    fake_client.responses["refresh"] = {"message": "Refresh token expired"}
    result = runner.invoke(main.cli, ["tasks"])

    assert result.exit_code == 1
    assert "Refresh token expired" in result.output


def test_login_with_email(runner, state_dir, fake_client):
    fake_client.responses["login"] = {"accessToken": "a1", "refreshToken": "r1"}
    result = runner.invoke(main.cli, ["login"], input="ana@example.com\nsecret\n")

    assert result.exit_code == 0
    assert "Logged in successfully" in result.output
    assert fake_client.calls == [("login", ({"password": "secret", "email": "ana@example.com"},))]

    tokens = TokenStore()
    assert (tokens.get("access_token"), tokens.get("refresh_token")) == ("a1", "r1")
    config = json.loads((state_dir / "config.json").read_text())
    assert config["current_project_id"] == 0
    assert config["expires_at"]


def test_login_with_username_and_bad_password(runner, state_dir, fake_client):
    fake_client.responses["login"] = {"message": "Invalid credentials"}
    result = runner.invoke(main.cli, ["login"], input="ana\nwrong\n")

    assert result.exit_code == 0
    assert "Invalid credentials" in result.output
    assert fake_client.calls[0][1][0]["username"] == "ana"
    assert load_config() is None


def test_logout(runner, logged_in):
    result = runner.invoke(main.cli, ["logout"])

    assert result.exit_code == 0
    assert "Logged out successfully" in result.output
    assert TokenStore().get("access_token") is None
    assert load_config() == CuesConfig()


def test_whoami(runner, logged_in, fake_client):
    fake_client.responses["get_user"] = {"user": {
        "id": 9, "username": "ana", "email": "ana@example.com", "createdAt": "2025-01-02T12:00:00+00:00",
    }}
    result = runner.invoke(main.cli, ["whoami"])

    assert result.exit_code == 0
    assert "ana@example.com" in result.output
    assert "2025" in result.output


def test_bad_date_template_setting_exits_with_error(runner, logged_in, fake_client, monkeypatch):
    monkeypatch.setattr(main, "resolve_due", functools.partial(resolve_due, template="%d %b %Y"))
    result = runner.invoke(main.cli, ["add", "Write report", "-u", "friday 10:00"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "Unsupported date directive" in result.output
    assert fake_client.calls == []


def test_malformed_task_record_exits_with_error(runner, logged_in, fake_client):
    fake_client.responses["get_tasks"] = {"tasks": [{"id": 1, "title": "t"}]}
    result = runner.invoke(main.cli, ["tasks"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, KeyError)
    assert "Unexpected task record" in result.output


def test_edit_done_flag_accepts_only_true_or_false(runner, logged_in, fake_client):
    result = runner.invoke(main.cli, ["edit", "12", "-D", "yes"])
    assert result.exit_code == 2
    assert fake_client.calls == []

    fake_client.responses["update_task"] = {"task": dict(TASK, isDone=True)}
    result = runner.invoke(main.cli, ["edit", "12", "-D", "TRUE"])
    assert result.exit_code == 0
    assert fake_client.calls == [("update_task", (12, {"isDone": True}))]
