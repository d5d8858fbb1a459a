# ebook_service/cli.py
"""
`flask ebook ...` maintenance commands.

Run alongside `flask db upgrade`; the reaper is meant for cron:

    */5 * * * * flask --app ebook_service ebook reap
"""
import json
import time

import click
from flask.cli import AppGroup

from ebook_service.application.ebook.audit_media import audit_media
from ebook_service.application.ebook.draft_store import provision_draft
from ebook_service.application.ebook.reap_pending_deletions import reap_pending_deletions
from ebook_service.application.ebook.reindex_media import reindex_media
from ebook_service.normalizers.media import normalize_pending
from ebook_service.utils.pending import list_pending

ebook_cli = AppGroup("ebook", help="Ebook document and media maintenance.")


@ebook_cli.command("provision")
@click.option("--slug", default=None, help="Document slot (defaults to EBOOK_DOCUMENT_SLUG).")
def provision_command(slug):
    """Create the document slot if it does not exist."""
    draft, created = provision_draft(slug)
    click.echo(f"{'created' if created else 'exists'}: {draft.slug} ({draft.id})")


@ebook_cli.command("reap")
@click.option("--batch-size", type=int, default=None)
@click.option(
    "--loop",
    "interval",
    type=int,
    default=None,
    metavar="SECONDS",
    help="Keep sweeping every SECONDS instead of exiting after one pass.",
)
def reap_command(batch_size, interval):
    """Physically delete media whose grace period has expired."""
    while True:
        result = reap_pending_deletions(batch_size=batch_size)
        click.echo(json.dumps(result.to_dict()))
        if not interval:
            break
        time.sleep(interval)


@ebook_cli.command("reindex")
def reindex_command():
    """Rebuild media counters and version mappings from the draft and snapshots."""
    click.echo(json.dumps(reindex_media(actor_id="cli")))


@ebook_cli.command("audit-media")
def audit_media_command():
    """Report storage objects and ledger rows that disagree. Changes nothing."""
    click.echo(json.dumps(audit_media(), indent=2))


@ebook_cli.command("pending")
@click.option("--limit", type=int, default=20)
@click.option("--offset", type=int, default=0)
def pending_command(limit, offset):
    """List queued media deletions, soonest first."""
    for entry in list_pending(limit=limit, offset=offset):
        click.echo(json.dumps(normalize_pending(entry)))


def register_cli(app):
    app.cli.add_command(ebook_cli)
