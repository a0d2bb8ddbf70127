#!/usr/bin/env python3
"""
Cues - A todo list CLI

Talks to the Cues task service: log in once, pick an active project,
then add, list, edit and complete tasks from the terminal.
"""
import functools
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import (
    ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY,
    DUE_DATE_EXAMPLES, LOG_FORMAT, LOG_LEVEL
)
from modules.api import CuesClient
from modules.auth import expiry_from_now, get_access_token
from modules.dates import DateContext, InvalidFormat, resolve_due
from modules.display import (
    console, format_pretty_date, log_err, print_banner, print_error,
    print_login_hint, print_project, print_task
)
from modules.errors import CuesError, NotLoggedIn
from modules.models import Priority, Project, Task, User
from modules.store import CuesConfig, TokenStore, load_config, save_config

logger = logging.getLogger("cues")

PRIORITY_CHOICES = click.Choice([p.value.lower() for p in Priority], case_sensitive=False)


class AliasedGroup(click.Group):
    """Click group that also resolves a few hidden command aliases."""

    ALIASES = {"current": "cwp", "active": "cwp"}

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, self.ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx, args):
        _, cmd, args = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, args


def handle_errors(func):
    """Print CuesError failures instead of a traceback and exit non-zero."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except CuesError as e:
            logger.debug("Command failed", exc_info=True)
            console.print()
            print_error(str(e))
            sys.exit(1)
    return wrapper


def parse_due(due: Optional[str]) -> Optional[str]:
    """Resolve a --due phrase, or None if it wasn't given. Raises InvalidFormat."""
    if due is None:
        return None
    return resolve_due(due, DateContext.now())


def report_invalid_due(due: str):
    examples = ", ".join(f'"{e}"' for e in DUE_DATE_EXAMPLES)
    console.print(f"[red]✗ Invalid due date format.[/red] Got \"{escape(due)}\", try e.g. {examples}")


def authed_client() -> Optional[tuple[CuesClient, CuesConfig]]:
    """Client carrying a fresh access token, or None after printing a login hint."""
    config = load_config()
    if config is None:
        print_login_hint()
        return None

    client = CuesClient()
    try:
        client.token = get_access_token(client, TokenStore(), config)
    except NotLoggedIn as e:
        print_login_hint(str(e))
        return None
    return client, config


@click.group(cls=AliasedGroup)
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log HTTP calls and token refreshes")
def cli(verbose: bool):
    """A todo list CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


# Projects

@cli.command()
@handle_errors
def projects():
    """List all projects."""
    session = authed_client()
    if not session:
        return
    client, _ = session

    res = client.get_projects()
    if "projects" not in res:
        console.print()
        log_err(res)
        return

    console.print("\nProjects:\n")
    for item in res["projects"]:
        print_project(Project.from_dict(item))


@cli.command()
@click.argument("pid", type=int)
@handle_errors
def use(pid: int):
    """Set the active project."""
    session = authed_client()
    if not session:
        return
    client, config = session

    res = client.get_project(pid)
    if "project" not in res:
        console.print()
        log_err(res)
        return

    project = Project.from_dict(res["project"])
    config.current_project_id = pid
    config.current_project = project.name
    save_config(config)

    console.print(f"\n[green]✓ Set active project:[/green]\n{escape(project.name)}")


@cli.command()
def cwp():
    """Show the active (current working) project."""
    config = load_config()
    if config is None:
        print_login_hint("Config file missing.")
        return

    if not config.has_active_project:
        console.print(
            "\n[bold red]✗[/bold red] You have not set any project as active. "
            "Log in using [yellow]cues login[/yellow] and run [yellow]cues use <pid>[/yellow]."
        )
        return

    console.print(f"\n[yellow]Active Project:[/yellow]\n[yellow]\\[{config.current_project_id}][/yellow] {escape(config.current_project)}")


@cli.group()
def new():
    """Create new resources."""
    pass


@new.command("project")
@click.argument("name")
@handle_errors
def new_project(name: str):
    """Create a new project."""
    session = authed_client()
    if not session:
        return
    client, _ = session

    res = client.create_project({"name": name})
    if "project" not in res:
        console.print()
        log_err(res)
        return

    console.print("\n[green]✓[/green] The following project was added:\n")
    print_project(Project.from_dict(res["project"]))


# Tasks

@cli.command()
@click.argument("title")
@click.option("-p", "--priority", type=PRIORITY_CHOICES, default=None, help="Task priority")
@click.option("-d", "--desc", default=None, help="Task description")
@click.option("-u", "--due", default=None, help='Task due date & time, e.g. "friday 16:00"')
@handle_errors
def add(title: str, priority: Optional[str], desc: Optional[str], due: Optional[str]):
    """Add a task to the active project."""
    try:
        parsed_due = parse_due(due)
    except InvalidFormat as e:
        logger.debug(f"Rejected due date: {e}")
        report_invalid_due(due)
        return

    session = authed_client()
    if not session:
        return
    client, config = session

    payload = {
        "title": title,
        "projectId": config.current_project_id,
    }
    if desc is not None:
        payload["description"] = desc
    if parsed_due is not None:
        payload["due"] = parsed_due
    if priority is not None:
        payload["priority"] = Priority.parse(priority).value

    res = client.create_task(payload)
    if "task" not in res:
        console.print()
        log_err(res)
        return

    console.print("\n[green]✓[/green] The following task was added:\n")
    print_task(Task.from_dict(res["task"]))


@cli.command()
@click.option("-a", "--all", "show_all", is_flag=True, help="List tasks in all projects")
@handle_errors
def tasks(show_all: bool):
    """List tasks in the active project."""
    session = authed_client()
    if not session:
        return
    client, config = session

    task_res = client.get_tasks()
    if "tasks" not in task_res:
        console.print()
        log_err(task_res)
        return
    all_tasks = [Task.from_dict(t) for t in task_res["tasks"]]

    if not show_all:
        if not all_tasks:
            console.print(
                "\n[yellow]No tasks present in the current project. Run[/yellow] "
                "[blue]cues add[/blue] [yellow]to add new tasks.[/yellow]"
            )
            return
        console.print("\n[green]✓[/green] Available tasks:\n")
        for task in all_tasks:
            if task.project_id == config.current_project_id:
                print_task(task)
        return

    proj_res = client.get_projects()
    if "projects" not in proj_res:
        console.print()
        log_err(proj_res)
        return

    if not all_tasks:
        console.print(
            "\n[yellow]No tasks have been created. Run[/yellow] "
            "[blue]cues add[/blue] [yellow]to add new tasks.[/yellow]"
        )
        return

    all_projects = [Project.from_dict(p) for p in proj_res["projects"]]
    if not all_projects:
        console.print(
            "\n[yellow]No projects are defined. Run[/yellow] "
            "[blue]cues new project[/blue] [yellow]to add a new project.[/yellow]"
        )
        return

    console.print("\n[green]✓[/green] Available tasks:\n")
    for project in all_projects:
        project_tasks = [t for t in all_tasks if t.project_id == project.id]
        if not project_tasks:
            continue
        console.print(f"[bold yellow]▸ {escape(project.name)}[/bold yellow]\n")
        for task in project_tasks:
            print_task(task)
        console.print()


def _update_task(task_id: int, payload: dict, heading: str):
    session = authed_client()
    if not session:
        return
    client, _ = session

    res = client.update_task(task_id, payload)
    if "task" not in res:
        console.print()
        log_err(res)
        return

    console.print(f"\n[green]✓ {heading}[/green]\n")
    print_task(Task.from_dict(res["task"]))
    console.print("\nRun [yellow]cues tasks[/yellow] to view all tasks in current project.")


@cli.command()
@click.argument("task_id", type=int)
@handle_errors
def done(task_id: int):
    """Mark a task as done."""
    _update_task(task_id, {"isDone": True}, "Marked following task as done:")


@cli.command()
@click.argument("task_id", type=int)
@click.option("-t", "--title", default=None, help="Task title")
@click.option("-p", "--priority", type=PRIORITY_CHOICES, default=None, help="Task priority")
@click.option("-d", "--desc", default=None, help="Task description")
@click.option("-u", "--due", default=None, help='Task due date & time, e.g. "friday 16:00"')
@click.option("-D", "--done", "is_done", type=click.Choice(["true", "false"], case_sensitive=False),
              default=None, help="Task done status")
@handle_errors
def edit(task_id: int, title: Optional[str], priority: Optional[str], desc: Optional[str],
         due: Optional[str], is_done: Optional[str]):
    """Edit a task."""
    try:
        parsed_due = parse_due(due)
    except InvalidFormat as e:
        logger.debug(f"Rejected due date: {e}")
        report_invalid_due(due)
        return

    payload = {}
    if title is not None:
        payload["title"] = title
    if desc is not None:
        payload["description"] = desc
    if priority is not None:
        payload["priority"] = Priority.parse(priority).value
    if parsed_due is not None:
        payload["due"] = parsed_due
    if is_done is not None:
        payload["isDone"] = is_done.lower() == "true"

    _update_task(task_id, payload, "Following task has been updated:")


@cli.command()
@click.argument("task_id", type=int)
@handle_errors
def delete(task_id: int):
    """Delete a task."""
    session = authed_client()
    if not session:
        return
    client, _ = session

    res = client.delete_task(task_id)
    if "task" not in res:
        console.print()
        log_err(res)
        return

    console.print("\n[green]✓ Following task has been deleted:[/green]\n")
    print_task(Task.from_dict(res["task"]))
    console.print("\nRun [yellow]cues tasks[/yellow] to view all available tasks in current project.")


# Authentication

@cli.command()
@handle_errors
def login():
    """Log in to your Cues account."""
    print_banner()
    console.print("\n[yellow]Log in to Cues CLI[/yellow]")
    console.print("──────────────────────────────\n")

    username_or_email = click.prompt("Username or Email").strip()
    password = click.prompt("Password", hide_input=True).strip()

    payload = {"password": password}
    if "@" in username_or_email:
        payload["email"] = username_or_email
    else:
        payload["username"] = username_or_email

    res = CuesClient().login(payload)
    access_token = res.get("accessToken")
    refresh_token = res.get("refreshToken")
    if not isinstance(access_token, str) or not isinstance(refresh_token, str):
        console.print()
        log_err(res)
        return

    tokens = TokenStore()
    tokens.set(ACCESS_TOKEN_KEY, access_token)
    tokens.set(REFRESH_TOKEN_KEY, refresh_token)
    save_config(CuesConfig(expires_at=expiry_from_now()))

    console.print(f"\n[green]✓[/green] Logged in successfully, as [yellow]{escape(username_or_email)}[/yellow].")


@cli.command()
@handle_errors
def logout():
    """Log out and forget stored tokens."""
    config = load_config()
    if config is None:
        return

    print_banner()
    tokens = TokenStore()
    for name in (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY):
        if not tokens.delete(name):
            logger.info(f"No {name} was stored")

    save_config(CuesConfig())
    console.print(
        "\n[green]✓ Logged out successfully. Log in using the command[/green] [yellow]cues login[/yellow]"
    )


@cli.command()
@handle_errors
def whoami():
    """Show the logged in user."""
    session = authed_client()
    if not session:
        return
    client, _ = session

    res = client.get_user()
    if "user" not in res:
        console.print()
        log_err(res)
        return

    user = User.from_dict(res["user"])
    try:
        joined = format_pretty_date(user.created_at)
    except ValueError:
        joined = user.created_at

    print_banner()
    console.print("\n[yellow]User Information[/yellow]")
    console.print("──────────────────────────────")
    console.print(f"\n\n[blue]Username:[/blue] {escape(user.username)}")
    console.print(f"\n[blue]Email address:[/blue] {escape(user.email)}")
    console.print(f"\n[blue]Joined on:[/blue] {joined}")


if __name__ == "__main__":
    cli()
