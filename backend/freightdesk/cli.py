# Overview: Flask CLI command groups for bootstrap, job import and voucher numbers.

# backend/freightdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Jobs:
# - python -m flask jobs import backup.json
#   Upsert jobs by jobCode from a JSON array (or {"jobs": [...]}).
#
# Voucher numbers:
# - python -m flask docs next --prefix NTTK
#   Preview the next number from stored jobs, receipts and reservations (reserves nothing).
# - python -m flask docs reserve --prefix UNC --width 5
#   Reserve a number; never handed out again.

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import document_service, job_service
from .services.document_service import DocumentSequenceError
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('jobs')
def jobs_group():
    """Job import commands."""


@jobs_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_jobs_cmd(path):
    """Upsert jobs by jobCode from a JSON file."""
    with open(path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON: {e}")

    rows = data.get("jobs") if isinstance(data, dict) else data
    try:
        result = job_service.import_jobs(rows)
    except ValidationError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Added {result['added']}, updated {result['updated']}")
    for error in result["errors"]:
        click.echo(f"FAIL Row {error['row']} ({error.get('jobCode') or '-'}): {error['error']}")


@click.group('docs')
def docs_group():
    """Voucher number commands."""


def _default_width():
    return current_app.config.get("DOC_NO_WIDTH", document_service.DEFAULT_DOC_WIDTH)


@docs_group.command('next')
@click.option('--prefix', default=document_service.DOC_PREFIX_RECEIPT, show_default=True)
@click.option('--width', type=int, default=None, help='Zero-padding (default DOC_NO_WIDTH)')
@with_appcontext
def docs_next(prefix, width):
    """Preview the next voucher number."""
    try:
        doc_no = document_service.preview_next_doc_no(prefix, width or _default_width())
    except DocumentSequenceError as e:
        raise click.ClickException(str(e))
    click.echo(doc_no)


@docs_group.command('reserve')
@click.option('--prefix', default=document_service.DOC_PREFIX_RECEIPT, show_default=True)
@click.option('--width', type=int, default=None, help='Zero-padding (default DOC_NO_WIDTH)')
@with_appcontext
def docs_reserve(prefix, width):
    """Reserve the next voucher number."""
    try:
        doc_no = document_service.reserve_doc_no(prefix, width or _default_width())
    except DocumentSequenceError as e:
        raise click.ClickException(str(e))
    click.echo(doc_no)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(jobs_group)
    app.cli.add_command(docs_group)
