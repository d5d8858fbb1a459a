import json

from ebook_service.application.ebook.request_media_deletion import request_media_deletion
from ebook_service.models.draft import EbookDraft

A = "ebooks/main/a.png"


def test_provision_reports_existing_slot(app):
    result = app.test_cli_runner().invoke(args=["ebook", "provision"])

    assert result.exit_code == 0
    assert result.stdout.startswith("exists: main")


def test_provision_creates_new_slot(app):
    result = app.test_cli_runner().invoke(args=["ebook", "provision", "--slug", "second"])

    assert result.exit_code == 0
    assert result.stdout.startswith("created: second")
    assert EbookDraft.query.filter_by(slug="second").count() == 1


def test_reap_prints_summary(app):
    result = app.test_cli_runner().invoke(args=["ebook", "reap"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["checked"] == 0


def test_pending_lists_entries(app):
    request_media_deletion(media_key=A)

    result = app.test_cli_runner().invoke(args=["ebook", "pending"])

    assert result.exit_code == 0
    assert json.loads(result.stdout.splitlines()[0])["media_key"] == A
