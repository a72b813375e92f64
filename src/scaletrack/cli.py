"""CLI interface using Typer."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from scaletrack import __version__
from scaletrack.config import get_settings
from scaletrack.db import get_db
from scaletrack.errors import ScaleTrackError
from scaletrack.logging_config import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="ScaleTrack: personal weight tracking with goal guidance lines",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
auth_app = typer.Typer(help="Register, log in and log out")
entry_app = typer.Typer(help="Log and manage weight entries")
settings_app = typer.Typer(help="Configure goal and trend-line parameters")

app.add_typer(auth_app, name="auth")
app.add_typer(entry_app, name="entry")
app.add_typer(settings_app, name="settings")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2, default=str)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def fail(command: str, message: str, json_output: bool = False) -> NoReturn:
    """Report an error in the requested format and exit with code 1."""
    if json_output:
        output_json({"success": False, "command": command, "errors": message.splitlines()})
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def ensure_tables() -> None:
    """Ensure tables exist (idempotent)."""
    get_db().initialize_schema()


def require_user(command: str, json_output: bool = False) -> int:
    """Return the logged-in user id or exit with a login hint.

    The account must still exist in the current database.
    """
    from scaletrack.auth import current_user

    try:
        with get_db().get_connection() as conn:
            user = current_user(conn, get_settings())
    except ScaleTrackError as e:
        fail(command, str(e), json_output)
    return user.user_id


def parse_when(value: Optional[str]) -> Optional[datetime]:
    """Parse YYYY-MM-DD or a full ISO timestamp. None means now."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD")
    # A bare date is taken as noon so it never shifts across days
    if len(value) == 10:
        parsed = parsed.replace(hour=12)
    return parsed


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default from config)"
    ),
) -> None:
    """Personal weight tracking with goal guidance lines."""
    try:
        settings = get_settings()
    except ScaleTrackError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    configure_logging(
        level=log_level or settings.logging.level,
        fmt=settings.logging.format,
        verbose=verbose,
    )


# Callbacks for sub-apps to auto-create tables on first use
@auth_app.callback()
def auth_callback() -> None:
    """Ensure tables exist before any auth command."""
    ensure_tables()


@entry_app.callback()
def entry_callback() -> None:
    """Ensure tables exist before any entry command."""
    ensure_tables()


@settings_app.callback()
def settings_callback() -> None:
    """Ensure tables exist before any settings command."""
    ensure_tables()


# ============================================================================
# Top-level commands
# ============================================================================


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"scaletrack {__version__}")


@app.command()
def init(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create the config directory, config file and database."""
    settings = get_settings()
    config_path = settings.config_dir / "config.yaml"
    created_config = not config_path.exists()
    if created_config:
        settings.save(config_path)

    ensure_tables()

    if json_output:
        output_json({
            "success": True,
            "command": "init",
            "data": {
                "config_path": str(config_path),
                "database_path": str(settings.database.path),
                "created_config": created_config,
            },
            "human_summary": f"Database ready at {settings.database.path}",
        })
    else:
        if created_config:
            console.print(f"[green]Wrote default config:[/green] {config_path}")
        console.print(f"[green]Database ready:[/green] {settings.database.path}")


@app.command()
def chart(
    days: Optional[int] = typer.Option(
        None, "--days", "-d", help="Days to show (default from config, 0 = all)"
    ),
    output_format: Optional[str] = typer.Option(
        None, "--format", "-f", help="table, json or csv"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write json or csv output to a file"
    ),
) -> None:
    """Show daily averages with floor, ideal and ceiling lines."""
    from scaletrack.errors import InvalidParameterError
    from scaletrack.export.formatters import (
        CSVFormatter,
        JSONFormatter,
        TableFormatter,
        build_chart_rows,
    )
    from scaletrack.tracking.aggregate import daily_averages, limit_to_range
    from scaletrack.tracking.queries import EntryQueries, SettingsQueries
    from scaletrack.tracking.trendlines import MIN_DAYS, build_trend_lines

    settings = get_settings()
    fmt = output_format or settings.defaults.output_format
    if fmt not in ("table", "json", "csv"):
        raise typer.BadParameter("--format must be table, json or csv")
    if output and fmt == "table":
        raise typer.BadParameter("--output needs --format json or csv")
    json_output = fmt == "json"

    ensure_tables()
    user_id = require_user("chart", json_output)
    range_days = settings.defaults.chart_days if days is None else days

    with get_db().get_connection() as conn:
        entries = EntryQueries.list_entries(conn, user_id)
        user_settings = SettingsQueries.get_settings(conn, user_id)

    averages = limit_to_range(daily_averages(entries), days=range_days)

    try:
        lines = build_trend_lines(averages, user_settings)
    except InvalidParameterError as e:
        fail("chart", f"Invalid settings:\n{e}", json_output)

    notice = None
    if lines is None:
        notice = "Trend lines unavailable: set a goal with 'scaletrack settings set --goal'"
    elif not lines.available:
        notice = f"Trend lines need at least {MIN_DAYS} days of data ({len(averages)} so far)"

    rows = build_chart_rows(averages, lines)

    if fmt == "table":
        if not rows:
            console.print("No weight entries found")
            return
        TableFormatter(console).format(rows, title=f"Weight Chart ({len(rows)} days)")
        if notice:
            console.print(f"[yellow]{notice}[/yellow]")
        return

    if fmt == "json":
        available = bool(lines and lines.available)
        text = JSONFormatter().format(
            rows,
            command="chart",
            human_summary=(
                f"{len(rows)} days, trend lines "
                f"{'available' if available else 'unavailable'}"
            ),
            trend_lines_available=available,
            notice=notice,
        )
    else:
        text = CSVFormatter().format(rows)

    if output:
        output.write_text(text)
        console.print(f"[green]Wrote {len(rows)} rows to {output}[/green]")
    else:
        print(text)


@app.command()
def summary(
    days: Optional[int] = typer.Option(
        None, "--days", "-d", help="Days to analyze (default from config, 0 = all)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Summarize progress over a period."""
    from dataclasses import asdict

    from scaletrack.tracking.aggregate import daily_averages, limit_to_range
    from scaletrack.tracking.queries import EntryQueries, SettingsQueries
    from scaletrack.tracking.report import format_summary, generate_summary

    ensure_tables()
    user_id = require_user("summary", json_output)
    settings = get_settings()
    range_days = settings.defaults.chart_days if days is None else days

    with get_db().get_connection() as conn:
        entries = EntryQueries.list_entries(conn, user_id)
        user_settings = SettingsQueries.get_settings(conn, user_id)

    averages = limit_to_range(daily_averages(entries), days=range_days)
    report = generate_summary(averages, user_settings.weight_goal)

    if report is None:
        if json_output:
            output_json({"success": True, "command": "summary", "data": None,
                         "human_summary": "No weight entries found"})
        else:
            console.print("No weight entries found")
        return

    text = format_summary(report)
    if json_output:
        output_json({
            "success": True,
            "command": "summary",
            "data": asdict(report),
            "human_summary": text.splitlines()[0],
        })
    else:
        console.print(text)


# ============================================================================
# Auth Commands
# ============================================================================


@auth_app.command("register")
def auth_register(
    username: str = typer.Option(..., "--username", "-u", help="Username"),
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True,
        help="Password",
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create an account."""
    from scaletrack.auth import register_user

    try:
        with get_db().get_connection() as conn:
            user = register_user(conn, username, email, password)
    except ScaleTrackError as e:
        fail("auth register", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "auth register",
            "data": {"user_id": user.user_id, "username": user.username, "email": user.email},
            "human_summary": f"Registered {user.username}",
        })
    else:
        console.print(f"[green]Registered {user.username} (ID: {user.user_id})[/green]")
        console.print("Log in with: scaletrack auth login")


@auth_app.command("login")
def auth_login(
    username: str = typer.Option(..., "--username", "-u", prompt=True, help="Username"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, help="Password"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log in and store a session token."""
    from scaletrack.auth import SessionStore, authenticate, get_secret_key, issue_token

    settings = get_settings()
    try:
        with get_db().get_connection() as conn:
            user = authenticate(conn, username, password)
    except ScaleTrackError as e:
        fail("auth login", str(e), json_output)

    token = issue_token(user, get_secret_key(settings), settings.auth.token_ttl_hours)
    SessionStore(settings.session_path).save(token)

    if json_output:
        output_json({
            "success": True,
            "command": "auth login",
            "data": {"user_id": user.user_id, "username": user.username},
            "human_summary": f"Logged in as {user.username}",
        })
    else:
        console.print(f"[green]Logged in as {user.username}[/green]")


@auth_app.command("logout")
def auth_logout() -> None:
    """Forget the stored session."""
    from scaletrack.auth import SessionStore

    if SessionStore(get_settings().session_path).clear():
        console.print("Logged out")
    else:
        console.print("Not logged in")


@auth_app.command("whoami")
def auth_whoami(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the logged-in user."""
    from scaletrack.auth import current_user

    try:
        with get_db().get_connection() as conn:
            user = current_user(conn, get_settings())
    except ScaleTrackError as e:
        fail("auth whoami", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "auth whoami",
            "data": {"user_id": user.user_id, "username": user.username, "email": user.email},
            "human_summary": user.username,
        })
    else:
        console.print(f"[bold]{user.username}[/bold] <{user.email}> (ID: {user.user_id})")


# ============================================================================
# Entry Commands
# ============================================================================


def _check_weight(command: str, value: float, json_output: bool) -> None:
    from scaletrack.validation import format_validation_errors, validate_weight

    check = validate_weight(value)
    if not check.is_valid:
        fail(command, format_validation_errors(check.errors), json_output)


@entry_app.command("add")
def entry_add(
    value: float = typer.Argument(..., help="Measured weight"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date or timestamp (default: now)"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Optional notes"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log a measurement."""
    from scaletrack.tracking.queries import EntryQueries

    user_id = require_user("entry add", json_output)
    _check_weight("entry add", value, json_output)

    with get_db().get_connection() as conn:
        entry = EntryQueries.add_entry(conn, user_id, value, parse_when(date_str), notes)

    if json_output:
        output_json({
            "success": True,
            "command": "entry add",
            "data": {
                "entry_id": entry.entry_id,
                "value": entry.value,
                "measured_at": entry.measured_at.isoformat(),
            },
            "human_summary": f"Logged {value:.2f}",
        })
    else:
        console.print(f"[green]Logged:[/green] {value:.2f} at {entry.measured_at:%Y-%m-%d %H:%M}")


@entry_app.command("list")
def entry_list(
    days: int = typer.Option(30, "--days", "-d", help="Number of days to show (0 = all)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List raw measurements."""
    from scaletrack.tracking.queries import EntryQueries

    user_id = require_user("entry list", json_output)
    with get_db().get_connection() as conn:
        entries = EntryQueries.list_entries(conn, user_id, days=days or None)

    if json_output:
        output_json({
            "success": True,
            "command": "entry list",
            "data": {
                "entries": [
                    {
                        "entry_id": e.entry_id,
                        "measured_at": e.measured_at.isoformat(),
                        "value": e.value,
                        "notes": e.notes,
                        "source": e.source,
                    }
                    for e in entries
                ]
            },
            "human_summary": f"{len(entries)} entries",
        })
        return

    if not entries:
        console.print("No weight entries found")
        return

    table = Table(title="Weight Entries" if not days else f"Weight Entries (last {days} days)")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("When", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Source")
    table.add_column("Notes")
    for e in entries:
        table.add_row(
            str(e.entry_id),
            f"{e.measured_at:%Y-%m-%d %H:%M}",
            f"{e.value:.2f}",
            e.source,
            e.notes or "",
        )
    console.print(table)


@entry_app.command("edit")
def entry_edit(
    entry_id: int = typer.Argument(..., help="Entry ID"),
    value: Optional[float] = typer.Option(None, "--value", help="New value"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="New date"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="New notes"),
) -> None:
    """Change an entry."""
    from scaletrack.tracking.queries import EntryQueries

    user_id = require_user("entry edit")
    if value is not None:
        _check_weight("entry edit", value, False)

    with get_db().get_connection() as conn:
        entry = EntryQueries.update_entry(
            conn, user_id, entry_id, value=value, notes=notes, measured_at=parse_when(date_str)
        )

    if entry is None:
        fail("entry edit", f"Entry {entry_id} not found")
    console.print(f"[green]Updated entry {entry_id}[/green]")


@entry_app.command("delete")
def entry_delete(
    entry_id: int = typer.Argument(..., help="Entry ID"),
) -> None:
    """Delete an entry."""
    from scaletrack.tracking.queries import EntryQueries

    user_id = require_user("entry delete")
    with get_db().get_connection() as conn:
        deleted = EntryQueries.delete_entry(conn, user_id, entry_id)

    if not deleted:
        fail("entry delete", f"Entry {entry_id} not found")
    console.print(f"[green]Deleted entry {entry_id}[/green]")


@entry_app.command("clear")
def entry_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete all of your entries."""
    from scaletrack.tracking.queries import EntryQueries

    user_id = require_user("entry clear")
    if not yes:
        typer.confirm("Delete ALL weight entries?", abort=True)

    with get_db().get_connection() as conn:
        count = EntryQueries.delete_all(conn, user_id)
    console.print(f"[green]Deleted {count} entries[/green]")


@entry_app.command("from-image")
def entry_from_image(
    image: Path = typer.Argument(..., help="Photo of the scale display"),
    save: bool = typer.Option(False, "--save", help="Log the detected weight"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Notes if saved"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Read a weight from a scale photo."""
    from scaletrack.tracking.queries import EntryQueries, SettingsQueries
    from scaletrack.vision.readers import OllamaScaleReader, get_reader

    user_id = require_user("entry from-image", json_output)
    with get_db().get_connection() as conn:
        user_settings = SettingsQueries.get_settings(conn, user_id)

    try:
        reader = get_reader(get_settings(), api_key=user_settings.openai_api_key)
        try:
            reading = reader.read_weight(image)
        finally:
            if isinstance(reader, OllamaScaleReader):
                reader.close()
    except ScaleTrackError as e:
        fail("entry from-image", str(e), json_output)

    entry = None
    if save:
        _check_weight("entry from-image", reading.weight, json_output)
        with get_db().get_connection() as conn:
            entry = EntryQueries.add_entry(
                conn, user_id, reading.weight, notes=notes, source="image"
            )

    if json_output:
        output_json({
            "success": True,
            "command": "entry from-image",
            "data": {
                "weight": reading.weight,
                "raw_response": reading.raw_response,
                "entry_id": entry.entry_id if entry else None,
            },
            "human_summary": f"Detected {reading.weight}",
        })
    else:
        console.print(f"[blue]Detected weight:[/blue] {reading.weight}")
        if entry:
            console.print(f"[green]Logged as entry {entry.entry_id}[/green]")
        else:
            console.print(f"Save it with: scaletrack entry add {reading.weight}")


@entry_app.command("import")
def entry_import(
    csv_path: Path = typer.Argument(..., help="CSV with measured_at,value[,notes]"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Import entries from a CSV file."""
    from scaletrack.export.formatters import load_entries_csv
    from scaletrack.tracking.queries import EntryQueries
    from scaletrack.validation import validate_weight

    user_id = require_user("entry import", json_output)
    try:
        rows, skipped = load_entries_csv(csv_path)
    except (OSError, ValueError) as e:
        fail("entry import", str(e), json_output)

    loaded = 0
    with get_db().get_connection() as conn:
        for row in rows:
            if not validate_weight(row["value"]).is_valid:
                skipped += 1
                continue
            EntryQueries.add_entry(
                conn, user_id, row["value"], row["measured_at"], row["notes"], source="import"
            )
            loaded += 1

    logger.info("Imported %d entries from %s (%d skipped)", loaded, csv_path, skipped)
    if json_output:
        output_json({
            "success": True,
            "command": "entry import",
            "data": {"loaded": loaded, "skipped": skipped},
            "human_summary": f"Imported {loaded} entries",
        })
    else:
        console.print(f"[green]Imported {loaded} entries[/green]")
        if skipped:
            console.print(f"[yellow]Skipped {skipped} invalid rows[/yellow]")


@entry_app.command("export")
def entry_export(
    csv_path: Path = typer.Argument(..., help="Destination CSV file"),
) -> None:
    """Export all entries to a CSV file."""
    from scaletrack.export.formatters import export_entries_csv
    from scaletrack.tracking.queries import EntryQueries

    user_id = require_user("entry export")
    with get_db().get_connection() as conn:
        entries = EntryQueries.list_entries(conn, user_id)

    count = export_entries_csv(entries, csv_path)
    console.print(f"[green]Exported {count} entries to {csv_path}[/green]")


# ============================================================================
# Settings Commands
# ============================================================================


@settings_app.command("show")
def settings_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show goal settings."""
    from scaletrack.tracking.queries import SettingsQueries

    user_id = require_user("settings show", json_output)
    with get_db().get_connection() as conn:
        s = SettingsQueries.get_settings(conn, user_id)

    data = {
        "weight_goal": s.weight_goal,
        "loss_rate": s.loss_rate,
        "buffer_value": s.buffer_value,
        "carb_fat_ratio": s.carb_fat_ratio,
        "openai_api_key_set": bool(s.openai_api_key),
    }
    if json_output:
        output_json({
            "success": True,
            "command": "settings show",
            "data": data,
            "human_summary": f"Goal: {s.weight_goal if s.weight_goal is not None else 'not set'}",
        })
        return

    console.print("[bold]Settings[/bold]")
    console.print(f"  Weight goal: {s.weight_goal if s.weight_goal is not None else 'not set'}")
    console.print(f"  Loss rate: {s.loss_rate}")
    console.print(f"  Buffer value: {s.buffer_value}")
    console.print(f"  Carb/fat ratio: {s.carb_fat_ratio}")
    console.print(f"  OpenAI API key: {'set' if s.openai_api_key else 'not set'}")


@settings_app.command("set")
def settings_set(
    goal: Optional[float] = typer.Option(None, "--goal", help="Weight goal"),
    loss_rate: Optional[float] = typer.Option(None, "--loss-rate", help="Daily loss rate (0-1)"),
    buffer: Optional[float] = typer.Option(None, "--buffer", help="Buffer value (0-1)"),
    carb_fat_ratio: Optional[float] = typer.Option(
        None, "--carb-fat-ratio", help="Carb/fat ratio (0-1)"
    ),
    openai_key: Optional[str] = typer.Option(
        None, "--openai-key", help="OpenAI API key for scale photos ('' to remove)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Update goal settings. Unspecified values are kept."""
    from scaletrack.tracking.queries import SettingsQueries
    from scaletrack.validation import format_validation_errors, validate_settings

    user_id = require_user("settings set", json_output)

    check = validate_settings(
        weight_goal=goal, loss_rate=loss_rate, buffer_value=buffer, carb_fat_ratio=carb_fat_ratio
    )
    if not check.is_valid:
        fail("settings set", format_validation_errors(check.errors), json_output)

    with get_db().get_connection() as conn:
        s = SettingsQueries.get_settings(conn, user_id)
        if goal is not None:
            s.weight_goal = goal
        if loss_rate is not None:
            s.loss_rate = loss_rate
        if buffer is not None:
            s.buffer_value = buffer
        if carb_fat_ratio is not None:
            s.carb_fat_ratio = carb_fat_ratio
        if openai_key is not None:
            s.openai_api_key = openai_key or None
        SettingsQueries.save_settings(conn, s)

    if json_output:
        output_json({
            "success": True,
            "command": "settings set",
            "data": {
                "weight_goal": s.weight_goal,
                "loss_rate": s.loss_rate,
                "buffer_value": s.buffer_value,
                "carb_fat_ratio": s.carb_fat_ratio,
            },
            "human_summary": "Settings saved",
        })
    else:
        console.print("[green]Settings saved[/green]")


if __name__ == "__main__":
    app()
