"""CLI entry point: standup.

Subcommands:
    standup init                  # Store GitHub credentials in the config file
    standup report -s yesterday   # Print the standup report
    standup calendars             # List Google calendars available to the token
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

import click
import structlog

from standup.core.config import DEFAULT_CONFIG_PATH, Config, GitHubSettings, GoogleToken
from standup.core.logging import setup_logging
from standup.errors import ConfigurationError, StandupError
from standup.gcalendar import CalendarClient
from standup.github.client import GitHubClient
from standup.github.pipeline import fetch_report
from standup.report import ReportEntry

log = structlog.get_logger("standup.cli")


def parse_when(value: str, today: date | None = None) -> datetime:
    """Parse ``today``, ``yesterday``, ``YYYY-MM-DD`` or an ISO-8601 datetime.

    Date forms mean local midnight. Naive datetimes are taken as local time.
    The result is always UTC.
    """
    today = today or date.today()
    keyword = value.strip().lower()
    if keyword == "today":
        day = today
    elif keyword == "yesterday":
        day = today - timedelta(days=1)
    else:
        try:
            day = date.fromisoformat(keyword)
        except ValueError:
            day = None
    if day is not None:
        return datetime.combine(day, time.min).astimezone().astimezone(timezone.utc)

    try:
        moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as exc:
        raise click.BadParameter(
            f"{value!r} is not 'today', 'yesterday', a date or an ISO-8601 datetime"
        ) from exc
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.astimezone(timezone.utc)


def render_report(
    github: dict[str, list[ReportEntry]], meetings: list[ReportEntry] | None = None
) -> str:
    """Render the grouped report as the lines printed to the terminal."""
    lines: list[str] = []
    for repo in sorted(github):
        lines.append(f"- {repo}:")
        lines.extend(f"  * {entry}" for entry in github[repo])
    if meetings:
        lines.append("- Meetings:")
        lines.extend(f"  * {entry}" for entry in meetings)
    return "\n".join(lines)


def _load_config(path: Path) -> Config | None:
    try:
        return Config.load(path)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option(
    "-c",
    "--config",
    "config_path",
    envvar="STANDUP_CONFIG",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Config file path",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Path) -> None:
    """Generate a report for morning standup using GitHub and Google Calendar."""
    setup_logging(verbose)
    ctx.obj = config_path


@main.command("init")
@click.option("-u", "--user", prompt="GitHub login", help="GitHub user login")
@click.option(
    "-t", "--token", prompt="GitHub personal token", hide_input=True, help="Personal GitHub token"
)
@click.pass_obj
def init(config_path: Path, user: str, token: str) -> None:
    """Store GitHub credentials in the config file."""
    config = _load_config(config_path)
    github = GitHubSettings(username=user, token=token)
    if config is None:
        config = Config(github=github)
    else:
        config.github = github
    try:
        config.save(config_path)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Config written to {config_path}")


@main.command("report")
@click.option("-u", "--user", envvar="STANDUP_USER", default=None, help="GitHub user login")
@click.option(
    "-t", "--token", envvar="STANDUP_GITHUB_TOKEN", default=None, help="Personal GitHub token"
)
@click.option("-s", "--since", default="yesterday", show_default=True, help="Start of the window")
@click.option("--until", default=None, help="End of the window (exclusive)")
@click.option("--issue-comments", is_flag=True, help="Report comments on issues")
@click.option(
    "--calendar/--no-calendar", default=True, help="Include Google Calendar meetings if configured"
)
@click.pass_obj
def report(
    config_path: Path,
    user: str | None,
    token: str | None,
    since: str,
    until: str | None,
    issue_comments: bool,
    calendar: bool,
) -> None:
    """Print GitHub activity (and meetings) since the given date."""
    since_dt = parse_when(since)
    until_dt = parse_when(until) if until else None
    config = _load_config(config_path)

    if config is not None:
        user = user or config.github.username
        token = token or config.github.token
    if not user or not token:
        raise click.ClickException(
            "GitHub user and token are required: pass --user/--token, set "
            "STANDUP_USER/STANDUP_GITHUB_TOKEN or run 'standup init'"
        )

    try:
        with GitHubClient(token) as client:
            github = fetch_report(
                client, user, since_dt, until_dt, include_issue_comments=issue_comments
            )
        meetings: list[ReportEntry] = []
        if calendar and config is not None and config.gcal is not None:
            with _calendar_client(config, config_path) as cal:
                meetings = cal.events(since_dt, until_dt)
    except StandupError as exc:
        log.debug("cli.report_failed", error=str(exc))
        raise click.ClickException(str(exc)) from exc

    output = render_report(github, meetings)
    if output:
        click.echo(output)


@main.command("calendars")
@click.pass_obj
def calendars(config_path: Path) -> None:
    """List Google calendars (id and name) visible to the stored token."""
    config = _load_config(config_path)
    if config is None:
        raise click.ClickException(f"config file {config_path} not found, run 'standup init'")
    try:
        with _calendar_client(config, config_path) as cal:
            items = cal.calendars()
    except StandupError as exc:
        raise click.ClickException(str(exc)) from exc
    for item in items:
        click.echo(f"{item.id}\t{item.summary}")


def _calendar_client(config: Config, config_path: Path) -> CalendarClient:
    """Build a calendar client that persists refreshed tokens to the config file."""
    if config.google_client is None:
        raise ConfigurationError("Google client credentials are not configured")

    def _save_token(token: GoogleToken) -> None:
        config.google_token = token
        config.save(config_path)

    return CalendarClient(
        config.google_client,
        config.google_token,
        calendar_id=config.gcal.id if config.gcal else None,
        on_token_refresh=_save_token,
    )
