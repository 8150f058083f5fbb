import logging

import click
from rich.console import Console
from rich.table import Table

from notifyrun import config
from notifyrun import logger as notifyrun_logger
from notifyrun.errors import NotifyRunError
from notifyrun.events import KNOWN_KINDS
from notifyrun.runner import WatchSession

KIND_DESCRIPTIONS = {
    "CREATE": "A file or directory was created (also the new name of a move).",
    "WRITE": "A file or directory was modified.",
    "REMOVE": "A file or directory was deleted.",
    "RENAME": "A file or directory was moved away (the old name of a move).",
    "CHMOD": "Attributes changed without a change to size or modification time.",
}


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to configuration TOML or YAML file.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx, config_path, debug):
    """
    notifyrun: run a command whenever watched files change.
    """
    try:
        cfg = config.load_config(config_path)
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)
    if debug:
        cfg.setdefault("logging", {})["level"] = "DEBUG"
    ctx.obj = {"config": cfg, "config_path": config_path, "debug": debug}


def resolve(ctx, **overrides):
    try:
        return config.resolve_settings(ctx.obj.get("config"), **overrides)
    except NotifyRunError as e:
        click.echo(f"Error in configuration: {e}", err=True)
        ctx.exit(1)


@main.command()
@click.option("--exec", "-e", "exec_str", default=None, help="Command to exec.")
@click.option("--ignore", "-i", multiple=True, help="Files to ignore (exact path as reported).")
@click.option("--ignore-event", "--ignoreEvent", "ignore_events", multiple=True, help="Events to ignore, e.g. CHMOD.")
@click.option("--recursive/--no-recursive", default=None, help="Watch directories recursively.")
@click.option("--polling/--no-polling", default=None, help="Poll the filesystem instead of using OS events.")
@click.option("--log-dir", default=None, help="Also write the log to DIR/notifyrun.log.")
@click.argument("paths", nargs=-1)
@click.pass_context
def run(ctx, exec_str, ignore, ignore_events, recursive, polling, log_dir, paths):
    """
    Watch PATHS and run the --exec command on every change.

    The command runs once at start-up and then at most once per burst of
    changes. A command that exits with an error is logged and watching goes
    on; a command that cannot be started stops notifyrun.
    """
    settings = resolve(
        ctx,
        paths=paths,
        command=exec_str,
        ignore=ignore,
        ignore_events=ignore_events,
        recursive=recursive,
        polling=polling,
        log_dir=log_dir,
    )
    if not settings.command:
        click.echo("Error: must select an action type (--exec)", err=True)
        ctx.exit(2)

    notifyrun_logger.setup_logger(
        "notifyrun",
        settings.log_dir,
        level=notifyrun_logger.parse_level(settings.log_level),
    )
    log = logging.getLogger("notifyrun")

    try:
        session = WatchSession(
            settings.paths,
            settings.command,
            ignore_subjects=settings.ignore,
            ignore_kinds=settings.ignore_events,
            recursive=settings.recursive,
            use_polling=settings.polling,
        )
        session.run()
    except KeyboardInterrupt:
        log.info("Interrupted, stopping.")
    except NotifyRunError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@main.command(name="show-config")
@click.pass_context
def show_config(ctx):
    """
    Show the resolved configuration.
    """
    settings = resolve(ctx)
    table = Table(title="notifyrun Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    for key, value in settings.as_dict().items():
        if isinstance(value, list):
            value = ", ".join(value) if value else "-"
        table.add_row(key, "-" if value is None else str(value))
    table.add_row("config file", str(config.find_config_path(ctx.obj.get("config_path")) or "-"))
    Console().print(table)


@main.command()
def kinds():
    """
    List the event kinds usable with --ignore-event.
    """
    table = Table(title="Event Kinds")
    table.add_column("Kind", style="cyan")
    table.add_column("Meaning", style="magenta")
    for kind in KNOWN_KINDS:
        table.add_row(kind, KIND_DESCRIPTIONS.get(kind, ""))
    Console().print(table)


if __name__ == "__main__":
    main()
