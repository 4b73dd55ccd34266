"""CLI interface for autodrop."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import click

from .api import DropboxClient
from .auth import require_access_token
from .config import config
from .exceptions import DropboxAPIError
from .output import OutputFormatter
from .sync import (
    LogEvent,
    LogKind,
    SnapshotStore,
    SyncConfigError,
    SyncManager,
    SyncPair,
    SyncRepository,
    load_sync_pairs_from_json,
)
from .utils import format_size, normalize_remote_path

logger = logging.getLogger(__name__)


def _print_event(out: OutputFormatter, event: LogEvent) -> None:
    """Forward a sync log event to the console."""
    if event.kind == LogKind.ERROR:
        out.error(event.message.removeprefix("ERROR: "))
    elif event.kind == LogKind.CONFLICT:
        out.warning(event.message)
        if event.details:
            for line in event.details.splitlines():
                out.info(f"  {line}")
    else:
        out.info(event.message)


@click.group()
@click.option(
    "--access-token",
    "-t",
    envvar="DROPBOX_ACCESS_TOKEN",
    help="Dropbox access token",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="autodrop")
@click.pass_context
def main(
    ctx: Any,
    access_token: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """autodrop - Keep local folders in sync with Dropbox."""
    ctx.ensure_object(dict)
    ctx.obj["access_token"] = access_token
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("autodrop").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--access-token",
    "-t",
    prompt="Enter your Dropbox access token",
    hide_input=True,
    help="Dropbox access token",
)
@click.pass_context
def init(ctx: Any, access_token: str) -> None:
    """Validate and store a Dropbox access token.

    The token is saved in ~/.config/autodrop/config for future use.
    """
    out: OutputFormatter = ctx.obj["out"]

    out.info("Validating access token...")
    try:
        with DropboxClient(access_token=access_token) as client:
            account = client.get_current_account()
    except DropboxAPIError as e:
        out.error(f"Access token rejected: {e}")
        ctx.exit(1)
        return

    config.save_access_token(access_token)
    email = account.get("email") if isinstance(account, dict) else None
    out.success(f"Logged in{f' as {email}' if email else ''}")
    out.info(f"Configuration saved to {config.config_file}")


@main.command()
@click.argument("literal", required=False)
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    help="Path (relative to the local folder) to exclude; repeatable",
)
@click.option(
    "--pairs-file",
    "-f",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with sync pairs (defaults to the configured pairs)",
)
@click.pass_context
def sync(
    ctx: Any,
    literal: Optional[str],
    exclude: tuple[str, ...],
    pairs_file: Optional[Path],
) -> None:
    """Sync local folders with Dropbox.

    LITERAL: optional one-off sync pair in format /local:method:/remote
    (or /local:/remote for two-way). Without it every configured pair is
    synced.

    Sync Methods:
      - pushOnly (po): Upload new and changed local files
      - pushMirror (pm): Upload and delete remote files missing locally
      - pullOnly (plo): Download new and changed remote files
      - pullMirror (plm): Download and delete local files missing remotely
      - twoWay (tw): Propagate changes and deletions both ways

    Examples:
        autodrop sync                               # All configured pairs
        autodrop sync ./notes:po:/Notes             # One-off push
        autodrop sync ./docs:tw:/Docs -e build      # Two-way, skip build/
        autodrop sync -f pairs.json                 # Pairs from a file
    """
    out: OutputFormatter = ctx.obj["out"]

    pairs: Optional[list[SyncPair]] = None
    try:
        if literal:
            pairs = [SyncPair.parse_literal(literal, excluded_paths=list(exclude))]
        elif pairs_file:
            pairs = load_sync_pairs_from_json(pairs_file)
    except (ValueError, SyncConfigError) as e:
        out.error(f"Invalid sync pair: {e}")
        ctx.exit(1)
        return

    token = require_access_token(ctx, out)
    manager = SyncManager(
        access_token=token,
        log_sink=lambda event: _print_event(out, event),
    )
    outcome = manager.sync_all(pairs)

    if out.json_output:
        out.output_json(outcome.to_dict())
    else:
        out.info(f"Status: {manager.status}")

    if outcome.conflicts and not out.quiet:
        out.warning(
            f"{outcome.conflicts} conflict(s): local versions were kept "
            "as '(conflict)' copies."
        )
    if outcome.errors:
        ctx.exit(1)


@main.command()
@click.pass_context
def pairs(ctx: Any) -> None:
    """List configured sync pairs."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        configured = SyncRepository().get_sync_pairs()
    except SyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if out.json_output:
        out.output_json([pair.to_dict() for pair in configured])
        return

    if not configured:
        out.info("No sync pairs configured. Use 'autodrop add-pair' to add one.")
        return

    for pair in configured:
        state = "" if pair.enabled else " [disabled]"
        out.print(f"{pair.id}{state}")
        out.print(f"  {pair}")
        if pair.excluded_paths:
            out.print(f"  Excluded: {', '.join(pair.excluded_paths)}")
        out.print(f"  Status: {pair.last_status}")


@main.command("add-pair")
@click.argument("literal")
@click.option("--exclude", "-e", multiple=True, help="Excluded path; repeatable")
@click.option("--alias", "-a", help="Short name for the pair")
@click.option("--disabled", is_flag=True, help="Add the pair disabled")
@click.pass_context
def add_pair(
    ctx: Any,
    literal: str,
    exclude: tuple[str, ...],
    alias: Optional[str],
    disabled: bool,
) -> None:
    """Add a sync pair given as /local:method:/remote."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        pair = SyncPair.parse_literal(literal, excluded_paths=list(exclude))
    except ValueError as e:
        out.error(f"Invalid sync pair: {e}")
        ctx.exit(1)
        return

    pair.local = pair.local.expanduser().resolve()
    pair.alias = alias
    pair.enabled = not disabled
    if not pair.local.is_dir():
        out.warning(f"Local folder does not exist yet: {pair.local}")

    try:
        SyncRepository().add_sync_pair(pair)
    except SyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if out.json_output:
        out.output_json(pair.to_dict())
    else:
        out.success(f"Added sync pair {pair.id}")


@main.command("remove-pair")
@click.argument("pair_id")
@click.pass_context
def remove_pair(ctx: Any, pair_id: str) -> None:
    """Remove a sync pair by id or alias (its snapshot is deleted too)."""
    out: OutputFormatter = ctx.obj["out"]
    repository = SyncRepository()

    try:
        pair = repository.get_sync_pair(pair_id)
        removed = pair is not None and repository.remove_sync_pair(pair.id)
    except SyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if not removed or pair is None:
        out.error(f"No sync pair found: {pair_id}")
        ctx.exit(1)
        return

    SnapshotStore().clear(pair.id)
    out.success(f"Removed sync pair {pair.id}")


@main.command()
@click.option("--limit", "-n", type=int, default=20, help="Entries to show")
@click.option("--clear", is_flag=True, help="Delete the history")
@click.pass_context
def history(ctx: Any, limit: int, clear: bool) -> None:
    """Show the sync history, newest first."""
    out: OutputFormatter = ctx.obj["out"]
    repository = SyncRepository()

    if clear:
        repository.clear_history()
        out.success("History cleared")
        return

    logs = repository.get_history_logs()[: max(limit, 0)]
    if out.json_output:
        out.output_json([log.to_dict() for log in logs])
        return

    if not logs:
        out.info("No sync history.")
        return

    for log in logs:
        when = datetime.fromtimestamp(log.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        out.print(f"{when}  {log.kind.value:<8} {log.message}")
        if log.details:
            for line in log.details.splitlines():
                out.print(f"    {line}")


@main.command()
@click.argument("path", required=False, default="")
@click.pass_context
def ls(ctx: Any, path: str) -> None:
    """List a Dropbox folder (the root by default)."""
    out: OutputFormatter = ctx.obj["out"]
    token = require_access_token(ctx, out)
    remote_path = normalize_remote_path(path)

    try:
        with DropboxClient(access_token=token) as client:
            entries = client.list_folder(remote_path)
    except DropboxAPIError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if out.json_output:
        out.output_json([entry.to_dict() for entry in entries])
        return

    if not entries:
        out.info(f"{remote_path or '/'} is empty")
        return

    for entry in entries:
        if entry.is_folder:
            out.print(f"[D] {entry.name}/")
        else:
            out.print(f"[F] {entry.name}  ({format_size(entry.size)})")


if __name__ == "__main__":
    main()
