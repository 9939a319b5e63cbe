"""Colored status output for people watching the install."""

from __future__ import annotations

from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console(highlight=False)


def banner(title: str) -> None:
    console.print(f"\n[bold cyan]=== {escape(title)} ===[/bold cyan]")


def step(index: int, total: int, title: str, *, skipped: bool = False) -> None:
    if skipped:
        console.print(f"[dim][{index}/{total}] {escape(title)} (already done, skipping)[/dim]")
    else:
        console.print(f"[bold blue][{index}/{total}][/bold blue] {escape(title)}...")


def success(msg: str) -> None:
    console.print(f"[green]✓ {escape(msg)}[/green]")


def warning(msg: str) -> None:
    console.print(f"[yellow]⚠ {escape(msg)}[/yellow]")


def error(msg: str) -> None:
    console.print(f"[bold red]✗ {escape(msg)}[/bold red]")


def journal(text: str, *, title: str = "Recent service logs") -> None:
    if text.strip():
        console.print(Panel(escape(text.rstrip()), title=title, border_style="red"))


def summary(details: Dict[str, Any], *, log_path: Optional[str] = None) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("API", escape(str(details.get("api_url", ""))))
    table.add_row("Username", escape(str(details.get("admin_username", ""))))
    table.add_row("Password", escape(str(details.get("admin_password", ""))))
    table.add_row("Status", f"systemctl status {details.get('service', '')}")
    table.add_row("Logs", f"journalctl -u {details.get('service', '')} -f")
    if log_path:
        table.add_row("Installer log", escape(log_path))
    console.print(Panel(table, title="[green]Installation completed successfully[/green]", border_style="green"))
    console.print("[yellow]Change the default admin password after the first login.[/yellow]")
