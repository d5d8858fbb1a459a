from ebook_service.extensions import db
from ebook_service.utils.clock import utcnow


class PendingDeletion(db.Model):
    __tablename__ = "ebook_media_pending_deletion"

    media_key = db.Column(db.String(512), primary_key=True)
    requested_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    not_before = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_checked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
