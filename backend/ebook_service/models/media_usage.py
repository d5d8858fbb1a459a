from ebook_service.extensions import db
from ebook_service.utils.clock import utcnow
from ebook_service.domain.invariants.media_usage import is_live


class MediaUsage(db.Model):
    """
    Aggregate reference counters for one media key.

    Rows are never deleted; a key that drops out of every document keeps
    a zeroed row so it can be picked up again without special casing.
    """
    __tablename__ = "ebook_media_usage"

    media_key = db.Column(db.String(512), primary_key=True)
    in_autosave = db.Column(db.Boolean, nullable=False, default=False)
    manual_refs = db.Column(db.Integer, nullable=False, default=0)
    published_refs = db.Column(db.Integer, nullable=False, default=0)
    last_seen_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    __table_args__ = (
        db.CheckConstraint("manual_refs >= 0", name="ck_media_usage_manual_refs"),
        db.CheckConstraint("published_refs >= 0", name="ck_media_usage_published_refs"),
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

    @property
    def is_live(self) -> bool:
        return is_live(
            in_autosave=self.in_autosave,
            manual_refs=self.manual_refs,
            published_refs=self.published_refs,
        )
