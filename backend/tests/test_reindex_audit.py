"""
Ledger rebuild and storage/ledger audit.
"""
from datetime import timedelta

from ebook_service.application.ebook.audit_media import audit_media
from ebook_service.application.ebook.create_version import create_version
from ebook_service.application.ebook.reindex_media import reindex_media
from ebook_service.application.ebook.save_draft import save_draft
from ebook_service.extensions import db
from ebook_service.models.audit_log import AuditLog
from ebook_service.models.media_usage import MediaUsage
from ebook_service.models.version_media import EbookVersionMedia
from ebook_service.utils.clock import utcnow
from ebook_service.utils.storage import StorageError

CDN = "https://cdn.test"
A = "ebooks/main/a.png"
B = "ebooks/main/b.png"


def doc(*names):
    return {"type": "doc", "content": [{"type": "image", "src": f"{CDN}/ebooks/main/{n}"} for n in names]}


def usage(key):
    return db.session.get(MediaUsage, key)


class TestReindex:

    def test_rebuilds_counters_from_sources(self, app):
        save_draft(doc("a.png"))
        create_version(kind="manual")
        create_version(kind="published")
        save_draft(doc("b.png"))

        # Corrupt the ledger
        for row in MediaUsage.query.all():
            row.in_autosave = True
            row.manual_refs = 7
            row.published_refs = 7
        db.session.commit()

        result = reindex_media(actor_id="admin-1")

        assert result["status"] == "reindexed"
        assert result["versions"] == 2
        assert result["unreadable_versions"] == []
        assert (usage(A).in_autosave, usage(A).manual_refs, usage(A).published_refs) == (False, 1, 1)
        assert (usage(B).in_autosave, usage(B).manual_refs, usage(B).published_refs) == (True, 0, 0)
        assert AuditLog.query.filter_by(action="ebook.reindex").count() == 1

    def test_rebuilds_missing_mappings(self, app):
        save_draft(doc("a.png"))
        version = create_version(kind="manual")
        EbookVersionMedia.query.delete()
        db.session.commit()

        reindex_media()

        links = EbookVersionMedia.query.filter_by(version_id=version.id).all()
        assert [link.media_key for link in links] == [A]

    def test_unreadable_version_keeps_its_mapping(self, app, storage):
        save_draft(doc("a.png"))
        version = create_version(kind="manual")
        save_draft(doc())
        storage.fail_on["get"] = StorageError("Timeout", code="Timeout")

        result = reindex_media()

        assert result["unreadable_versions"] == [version.id]
        assert usage(A).manual_refs == 1
        assert usage(A).in_autosave is False


class TestAuditMedia:

    def test_reports_orphans_in_storage(self, app, storage):
        save_draft(doc("a.png"))
        storage.add_media(A)
        storage.add_media(B)

        report = audit_media()

        assert report["checked_storage"] == 2
        assert report["orphans"] == [{"kind": "orphan_in_storage", "key": B}]

    def test_reports_stale_rows_whose_object_is_gone(self, app, storage):
        save_draft(doc("a.png", "b.png"))
        storage.add_media(B)
        for row in MediaUsage.query.all():
            row.last_seen_at = utcnow() - timedelta(days=120)
        db.session.commit()

        report = audit_media()

        assert report["missing"] == [{"kind": "missing_in_storage", "key": A}]

    def test_recent_rows_are_not_checked(self, app, storage):
        save_draft(doc("a.png"))

        assert audit_media()["missing"] == []

    def test_reports_snapshots_without_a_version(self, app, storage):
        create_version(kind="manual")
        storage.put_json("ebook/versions/manual/20200101T000000Z-deadbeef.json", {})

        report = audit_media()

        assert report["orphan_snapshots"] == [
            {"kind": "orphan_snapshot", "key": "ebook/versions/manual/20200101T000000Z-deadbeef.json"}
        ]
