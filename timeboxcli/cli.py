"""CLI entry point for the time tracker.

Every command loads the tracker, runs one operation and returns whether
the tracker changed. The group's result callback saves changed trackers.
"""

import logging
from pathlib import Path

import click
from click.shell_completion import CompletionItem, get_completion_class

from . import __version__
from . import dates
from . import render
from .config import DEFAULT_OUTPUT, ENV_OUTPUT, LOG_LEVELS, Settings
from .logger import get_logger
from .models import ActiveTimeBoxMissingNoteError, TimeBoxMissingNoteError, TimeTrackerError
from .query import ALL, ListOptions, SortOrder
from .storage import JsonFileStorage, StorageError
from .tracker import (
    ActiveTimeBoxExistsAlreadyError,
    NoActiveTimeBoxError,
    NoTimeBoxError,
    TimeTracker,
)

log = logging.getLogger(__name__)

COMPLETE_VAR = "_TIMEBOX_COMPLETE"


class AppContext:
    """Settings, storage and the lazily loaded tracker of one invocation."""

    def __init__(self, settings: Settings, storage: JsonFileStorage):
        self.settings = settings
        self.storage = storage
        self._tracker: TimeTracker | None = None

    @property
    def tracker(self) -> TimeTracker:
        if self._tracker is None:
            try:
                self._tracker = self.storage.load()
            except (TimeBoxMissingNoteError, ActiveTimeBoxMissingNoteError) as e:
                raise click.ClickException(
                    f"{e}. All time boxes are required to have at minimum one note. "
                    f"Fix this by manually editing your tracker file: {self.storage.path}"
                ) from e
            except StorageError as e:
                raise click.ClickException(str(e)) from e
        return self._tracker

    def save(self) -> None:
        try:
            self.storage.save(self.tracker)
        except StorageError as e:
            raise click.ClickException(str(e)) from e


def warn_active(tracker: TimeTracker) -> None:
    if tracker.active is not None:
        log.warning(f"There is an active time box:\n{render.generate_table_active(tracker.active)}")


def _parse_date_option(ctx, param, value):
    if value is None:
        return None
    try:
        return dates.parse_date_filter(value)
    except dates.DateFilterError as e:
        raise click.BadParameter(str(e)) from e


def _complete_date_option(ctx, param, incomplete):
    return [CompletionItem(name) for name in dates.NAMED_FILTERS if name.startswith(incomplete)]


@click.group()
@click.version_option(version=__version__, prog_name="timebox")
@click.option(
    "--output", "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_OUTPUT,
    envvar=ENV_OUTPUT,
    show_default=True,
    help="Directory holding the tracker file.",
)
@click.option(
    "--json-format", "-j",
    type=click.Choice(["pretty", "compact"]),
    default="pretty",
    show_default=True,
    help="Formatting of the tracker file.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="info",
    show_default=True,
    help="Level of feedback on stderr. $TIMEBOX_LOG takes precedence.",
)
@click.option("--log-file", is_flag=True, help="Also write a log file into the output directory.")
@click.pass_context
def cli(ctx, output: Path, json_format: str, log_level: str, log_file: bool):
    """Timebox - purposefully simple personal time tracking."""
    try:
        settings = Settings.build(output, json_format, log_level, log_file)
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    get_logger(level=settings.log_level, log_file=settings.log_file)
    log.debug(f"Determined tracker file: {settings.tracker_file}")

    storage = JsonFileStorage(settings.tracker_file, pretty=settings.pretty_json)
    ctx.obj = AppContext(settings, storage)


@cli.result_callback()
@click.pass_obj
def save_if_modified(app: AppContext, modified, **kwargs):
    if modified:
        app.save()
        log.debug(f"Saved tracker to {app.storage.path}")


@cli.command()
@click.pass_obj
def init(app: AppContext):
    """Initialize a new tracker file. Does not overwrite an existing one."""
    try:
        path = app.storage.init()
    except StorageError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Initialized time tracker at {path}")
    return False


@cli.command()
@click.argument("description")
@click.pass_obj
def begin(app: AppContext, description: str):
    """Begin working on something. Creates a new active time box if there is none."""
    try:
        app.tracker.begin(description)
    except ActiveTimeBoxExistsAlreadyError as e:
        raise click.ClickException(
            "Unable to begin a new time box because tracking is already active. "
            "End or cancel your active time box before beginning a new one."
        ) from e
    log.info("Began a new time box")
    return True


@cli.command()
@click.argument("description")
@click.option("--end", "-e", "end_after", is_flag=True, help="End the time box after adding the note.")
@click.pass_obj
def note(app: AppContext, description: str, end_after: bool):
    """Add a note to the active time box."""
    try:
        app.tracker.push_note(description)
    except NoActiveTimeBoxError as e:
        raise click.ClickException("Unable to add a note because there is no active time box.") from e
    log.info("Added note to the active time box")

    if end_after:
        ended = app.tracker.end()
        log.info(f"Ended the time box, took {ended.duration_in_hours():.2f}h")
    return True


@cli.command()
@click.argument("description")
@click.pass_obj
def amend(app: AppContext, description: str):
    """Change the description of the active time box's last note."""
    try:
        app.tracker.amend(description)
    except NoActiveTimeBoxError as e:
        raise click.ClickException("Unable to amend because there is no active time box.") from e
    except TimeTrackerError as e:
        raise click.ClickException(str(e)) from e
    log.info("Amended the last note with a new description")
    return True


@cli.command()
@click.pass_obj
def end(app: AppContext):
    """End the active time box."""
    try:
        ended = app.tracker.end()
    except NoActiveTimeBoxError as e:
        raise click.ClickException("Unable to end because there is no active time box.") from e

    if len(ended.notes) == 1:
        log.warning("The time box only has one note, this means it has a duration of zero!")
    log.info(f"Ended the time box, took {ended.duration_in_hours():.2f}h")
    return True


@cli.command()
@click.pass_obj
def resume(app: AppContext):
    """Make the last finished time box active again."""
    try:
        app.tracker.resume()
    except ActiveTimeBoxExistsAlreadyError as e:
        raise click.ClickException("Unable to resume because there is an active time box already.") from e
    except NoTimeBoxError as e:
        raise click.ClickException("Unable to resume because there are no finished time boxes.") from e
    log.info("Resumed the last finished time box")
    return True


@cli.command()
@click.pass_obj
def cancel(app: AppContext):
    """Cancel, i.e. remove, the active time box."""
    try:
        app.tracker.cancel()
    except NoActiveTimeBoxError as e:
        raise click.ClickException("Unable to cancel because there is no active time box.") from e
    log.info("Canceled the active time box")
    return True


@cli.command()
@click.pass_obj
def clear(app: AppContext):
    """Remove all finished time boxes. Does nothing while a time box is active."""
    tracker = app.tracker
    if tracker.is_active:
        warn_active(tracker)
        log.warning("Clearing did nothing because there is an active time box! End or cancel it first.")
        return False

    count = tracker.clear()
    if count == 0:
        log.warning("Clearing did nothing because there are no finished time boxes")
        return False

    log.info(f"Cleared the tracker, removed {count} time box/es")
    return True


@cli.command()
@click.pass_obj
def status(app: AppContext):
    """Show the active time box."""
    active = app.tracker.active_time_box()
    if active is None:
        raise click.ClickException("There is no active time box.")
    click.echo(render.generate_table_active(active))
    return False


@cli.command(name="list")
@click.option("--all", "-a", "show_all", is_flag=True, help="List all finished time boxes.")
@click.option("--page", "-p", type=click.IntRange(min=0), default=0, show_default=True,
              help="Page to show, used when no date filter is applied.")
@click.option("--limit", "-l", type=click.IntRange(min=1), default=25, show_default=True,
              help="Page size, used when no date filter is applied.")
@click.option("--date", "-d", "date_filter", metavar="DATE_OR_RANGE",
              callback=_parse_date_option, shell_complete=_complete_date_option,
              help="'today', 'yesterday', 'this-week', 'last-week', 'this-month', "
                   "'last-month', YYYY-MM-DD or YYYY-MM-DD..YYYY-MM-DD.")
@click.option("--order", "-o", type=click.Choice(["asc", "desc"]), default="asc", show_default=True,
              help="Descending lists the latest time boxes first.")
@click.pass_obj
def list_(app: AppContext, show_all: bool, page: int, limit: int, date_filter, order: str):
    """Show the finished time boxes."""
    sort_order = SortOrder.ASCENDING if order == "asc" else SortOrder.DESCENDING
    if show_all or date_filter is not None:
        options = ListOptions(skip=0, take=ALL, order=sort_order, filter=date_filter)
    else:
        options = ListOptions.page(page, limit, order=sort_order)

    result = app.tracker.finished(options)
    if not result.items:
        log.warning("Listing did nothing because there are no matching finished time boxes")
        return False

    click.echo(render.generate_table_finished(result.items))
    click.echo(f"Showing {len(result.items)} of {result.total} time boxes")
    warn_active(app.tracker)
    return False


@cli.command()
@click.argument("strategy", type=click.Choice(["csv", "json", "debug"]), default="csv")
@click.pass_obj
def export(app: AppContext, strategy: str):
    """Generate output for other tools: csv, json or debug."""
    finished = app.tracker.finished(ListOptions(take=ALL, order=SortOrder.ASCENDING)).items

    if not finished:
        log.warning("Exporting did nothing because there are no finished time boxes")
        return False

    if strategy == "csv":
        click.echo(render.generate_csv_export(finished), nl=False)
    elif strategy == "json":
        click.echo(render.generate_json_export(finished))
    else:
        click.echo(render.generate_debug_export(finished))

    warn_active(app.tracker)
    return False


@cli.command()
@click.argument("shell", type=click.Choice(["bash", "zsh", "fish"]))
def completion(shell: str):
    """Print the shell completion script for SHELL."""
    completion_class = get_completion_class(shell)
    complete = completion_class(cli, {}, "timebox", COMPLETE_VAR)
    click.echo(complete.source())
    return False


if __name__ == "__main__":
    cli()
