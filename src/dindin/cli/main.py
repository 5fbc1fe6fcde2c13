#!/usr/bin/env python3
"""
Main CLI Entry Point for dindin

Command-line front end for backup, restore, import, export and duplicate
preview over a JSON-file row store, acting as one configured owner.
"""

import os
from pathlib import Path
from typing import Any

import click

from ..backup import BackupService
from ..core.config import Config, get_config, reload_config
from ..core.datastore import JsonFileRowStore, ScopedStore
from ..core.errors import ReconciliationError, RequestValidationError
from ..core.json_utils import format_json, read_json, write_json
from ..core.models import OwnerIdentity, ResourceKind
from ..duplicates import FuzzyDuplicateStrategy, preview_candidates
from ..export import ExportService
from ..importer import ImportService


def _fail(error: ReconciliationError) -> click.ClickException:
    """Turn an engine error into a CLI failure with the full detail."""
    message = error.message
    if isinstance(error, RequestValidationError):
        lines = [message]
        for resource, errors in error.groups.items():
            for e in errors:
                lines.append(f"  {resource}[{e.index}].{e.field}: {e.message}")
        message = "\n".join(lines)
    return click.ClickException(message)


def _load_input(path: str) -> Any:
    input_path = Path(path)
    if not input_path.exists():
        raise click.ClickException(f"Input file not found: {input_path}")
    try:
        return read_json(input_path)
    except ValueError as e:
        raise click.ClickException(f"Input file is not valid JSON: {input_path}: {e}") from e


def _identity(ctx: click.Context) -> OwnerIdentity:
    config_obj: Config = ctx.obj["config"]
    owner_id = ctx.obj.get("owner") or config_obj.owner_id
    if not owner_id:
        raise click.ClickException("No owner configured: pass --owner or set DINDIN_OWNER_ID")
    return OwnerIdentity(owner_id=owner_id, email=config_obj.owner_email)


def _scoped_store(ctx: click.Context) -> ScopedStore:
    config_obj: Config = ctx.obj["config"]
    store = JsonFileRowStore(config_obj.store_file)
    return ScopedStore(store, _identity(ctx).owner_id)


def _echo_json(data: Any) -> None:
    click.echo(format_json(data))


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--owner", help="Owner id to act as (default: DINDIN_OWNER_ID)")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, owner: str | None, verbose: bool, debug: bool) -> None:
    """
    dindin - household finance reconciliation

    Backup and restore, bulk import with duplicate detection, and export
    of one owner's accounts, categories and transactions.
    """
    ctx.ensure_object(dict)

    if config_env:
        os.environ["DINDIN_ENV"] = config_env
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    try:
        config_obj = reload_config() if (config_env or debug) else get_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["owner"] = owner
    ctx.obj["config"] = config_obj

    if verbose:
        click.echo(f"Environment: {config_obj.environment.value}")
        click.echo(f"Store file: {config_obj.store_file}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from dindin import __version__

    click.echo(f"dindin v{__version__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj: Config = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Store File: {config_obj.store_file}")
    click.echo(f"  Owner: {config_obj.owner_id or '(not set)'}")
    click.echo(f"  Backup Version: {config_obj.backup.version}")
    click.echo(f"  Max Installments: {config_obj.imports.max_installments}")
    click.echo(
        f"  Fuzzy Matching: similarity>={config_obj.fuzzy.similarity_threshold} "
        f"window={config_obj.fuzzy.date_window_days}d "
        f"tolerance={config_obj.fuzzy.amount_tolerance_cents}c"
    )
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


@main.command()
@click.option("--output", "-o", help="Envelope file (default: <data dir>/backups/<name>.json)")
@click.pass_context
def backup(ctx: click.Context, output: str | None) -> None:
    """
    Write a checksum-sealed backup of the owner's data.

    Examples:
      dindin --owner u1 backup
      dindin --owner u1 backup --output ~/dindin-backup.json
    """
    config_obj: Config = ctx.obj["config"]
    try:
        envelope = BackupService(_scoped_store(ctx), config_obj.backup).create_backup(_identity(ctx))
    except ReconciliationError as e:
        raise _fail(e) from e

    output_path = Path(output) if output else config_obj.data_dir / "backups" / envelope.filename()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    write_json(output_path, envelope.to_dict())

    click.echo(f"Backup written to {output_path}")
    for kind, count in envelope.counts().items():
        click.echo(f"  {kind}: {count}")


@main.command()
@click.argument("backup_file")
@click.option("--preview", is_flag=True, help="Show what the backup contains without writing")
@click.option("--confirm-delete", is_flag=True, help="Delete current data and replace it with the backup")
@click.pass_context
def restore(ctx: click.Context, backup_file: str, preview: bool, confirm_delete: bool) -> None:
    """
    Restore a backup file, replacing the owner's current data.

    Examples:
      dindin --owner u1 restore backup.json --preview
      dindin --owner u1 restore backup.json --confirm-delete
    """
    config_obj: Config = ctx.obj["config"]
    data = _load_input(backup_file)
    try:
        result = BackupService(_scoped_store(ctx), config_obj.backup).restore(
            data, preview=preview, confirm_delete=confirm_delete
        )
    except ReconciliationError as e:
        raise _fail(e) from e

    _echo_json(result)
    if not result.get("success", True):
        raise click.ClickException("Restore finished with errors")


@main.command("import")
@click.argument("import_file")
@click.option(
    "--skip-duplicates/--keep-duplicates",
    default=None,
    help="Skip transactions already on file (default: skip)",
)
@click.option("--preview", is_flag=True, help="Count rows and duplicates without writing")
@click.pass_context
def import_(ctx: click.Context, import_file: str, skip_duplicates: bool | None, preview: bool) -> None:
    """
    Append accounts, categories and transactions from a JSON file.

    Examples:
      dindin --owner u1 import export.json --preview
      dindin --owner u1 import export.json --keep-duplicates
    """
    config_obj: Config = ctx.obj["config"]
    request = _load_input(import_file)
    if not isinstance(request, dict):
        raise click.ClickException("Import file must contain a JSON object")
    if skip_duplicates is not None:
        request["skipDuplicates"] = skip_duplicates
    if preview:
        request["preview"] = True

    try:
        result = ImportService(_scoped_store(ctx), config_obj.imports).run(request)
    except ReconciliationError as e:
        raise _fail(e) from e

    _echo_json(result)
    if not result.get("success", True):
        raise click.ClickException("Import finished with errors")


@main.command()
@click.option("--format", "fmt", type=click.Choice(["json", "csv"]), default="json", help="Output format")
@click.option(
    "--resource",
    default="all",
    help="transactions, accounts, categories or all",
)
@click.option("--date-from", help="First transaction date to include (YYYY-MM-DD)")
@click.option("--date-to", help="Last transaction date to include (YYYY-MM-DD)")
@click.option("--output", "-o", help="Output file or directory (default: stdout)")
@click.pass_context
def export(
    ctx: click.Context,
    fmt: str,
    resource: str,
    date_from: str | None,
    date_to: str | None,
    output: str | None,
) -> None:
    """
    Export the owner's data as JSON or CSV.

    With --format csv and --resource all, --output names a directory that
    receives one CSV file per resource.

    Examples:
      dindin --owner u1 export
      dindin --owner u1 export --format csv --resource transactions --date-from 2024-01-01
    """
    try:
        result = ExportService(_scoped_store(ctx)).export(
            resource=resource, fmt=fmt, date_from=date_from, date_to=date_to
        )
    except ReconciliationError as e:
        raise _fail(e) from e

    if isinstance(result.body, str):
        if output:
            Path(output).write_text(result.body + "\n", encoding="utf-8")
            click.echo(f"Export written to {output}")
        else:
            click.echo(result.body)
        return

    if fmt == "csv" and output:
        output_dir = Path(output)
        output_dir.mkdir(parents=True, exist_ok=True)
        for kind, text in result.body["files"].items():
            path = output_dir / f"{kind}.csv"
            path.write_text(text + "\n" if text else "", encoding="utf-8")
            click.echo(f"Export written to {path}")
        return

    if output:
        write_json(output, result.body)
        click.echo(f"Export written to {output}")
    else:
        _echo_json(result.body)


@main.command()
@click.argument("candidates_file")
@click.option("--output", "-o", help="Write the preview to a file instead of stdout")
@click.pass_context
def dedupe(ctx: click.Context, candidates_file: str, output: str | None) -> None:
    """
    Flag candidate transactions that look like ones already on file.

    CANDIDATES_FILE holds a list of transactions (or {"candidates": [...]}),
    for example OCR output from a receipt. Nothing is written to the store.
    """
    config_obj: Config = ctx.obj["config"]
    data = _load_input(candidates_file)
    candidates = data.get("candidates") if isinstance(data, dict) else data
    if not isinstance(candidates, list):
        raise click.ClickException("Candidates file must contain a list of transactions")

    try:
        existing = _scoped_store(ctx).query(ResourceKind.TRANSACTIONS.table)
        previews = preview_candidates(candidates, existing, FuzzyDuplicateStrategy(config_obj.fuzzy))
    except ReconciliationError as e:
        raise _fail(e) from e

    duplicate_count = sum(1 for preview in previews if preview.is_duplicate)
    result = {
        "candidates": [preview.to_dict() for preview in previews],
        "duplicateCount": duplicate_count,
    }

    if output:
        write_json(output, result)
        click.echo(f"Preview written to {output}")
    else:
        _echo_json(result)

    if ctx.obj.get("verbose"):
        click.echo(f"{duplicate_count} of {len(previews)} candidates look like duplicates")


if __name__ == "__main__":
    main()
