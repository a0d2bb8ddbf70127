"""
Terminal output for the Cues CLI.
"""
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.markup import escape

from modules.models import Priority, Project, Task

console = Console(highlight=False)

CUES_ASCII = r"""
 ██████╗██╗   ██╗███████╗███████╗
██╔════╝██║   ██║██╔════╝██╔════╝
██║     ██║   ██║█████╗  ███████╗
██║     ██║   ██║██╔══╝  ╚════██║
╚██████╗╚██████╔╝███████╗███████║
 ╚═════╝ ╚═════╝ ╚══════╝╚══════╝
"""

PRIORITY_COLORS = {
    Priority.HIGH: "red",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "green",
}


def ordinal_suffix(n: int) -> str:
    """English ordinal suffix: 1st, 2nd, 3rd, 11th..."""
    if n % 100 in (11, 12, 13):
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")


def format_pretty_date(value: Optional[str]) -> str:
    """
    Render an RFC 3339 timestamp in local time, e.g. "13th June, 2025    16:00".

    Raises:
        ValueError: if the timestamp can't be parsed
    """
    if not value or not value.strip():
        return "No due date"

    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00")).astimezone()
    return f"{dt.day}{ordinal_suffix(dt.day)} {dt:%B}, {dt.year}    {dt:%H:%M}"


def print_banner():
    console.print(f"[yellow]{CUES_ASCII}[/yellow]")


def print_task(task: Task, show_project: bool = False):
    """Pretty print one task."""
    task_id = f"[yellow]\\[{task.id}][/yellow]"
    status = "[green]\\[x][/green]" if task.is_done else "[red]\\[ ][/red]"
    color = PRIORITY_COLORS.get(task.priority, "dim white")
    priority_dot = f"[{color}]●[/{color}]"

    try:
        due = format_pretty_date(task.due)
    except ValueError:
        due = task.due

    title = escape(f"{task.title:<35}")
    if show_project:
        pid = f"[blue]<{task.project_id}>[/blue]"
        console.print(f"{task_id} {status} {pid} {title} {priority_dot} [blue]{escape(due)}[/blue]\n")
    else:
        console.print(f"{task_id} {status} {title} {priority_dot} [blue]{escape(due)}[/blue]\n")

    if task.description:
        console.print(f"[yellow]-[/yellow] {escape(task.description)}\n")


def print_project(project: Project):
    """Pretty print one project."""
    console.print(f"[yellow]▸ \\[{project.id}][/yellow] {escape(project.name):<35}\n")


def log_err(res: dict):
    """Print the error carried by an API response body."""
    message = res.get("message")
    error = res.get("error")
    if isinstance(message, str):
        console.print(f"[red]✗ {escape(message)}[/red]")
    elif isinstance(error, str):
        console.print(f"[red]✗[/red] The following error occurred: [red]{escape(error)}[/red]")
    else:
        console.print("[red]✗ Unexpected response from the server[/red]")


def print_error(message: str):
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_login_hint(message: str = "You need to log in first to run this command."):
    console.print(f"\n[red]✗[/red] {escape(message)} Run [yellow]cues login[/yellow] to log in to your account.")
