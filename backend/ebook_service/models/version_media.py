from ebook_service.extensions import db


class EbookVersionMedia(db.Model):
    """Media keys a version's content referenced at snapshot time."""
    __tablename__ = "ebook_version_media"

    version_id = db.Column(
        db.String(36),
        db.ForeignKey("ebook_versions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    media_key = db.Column(db.String(512), primary_key=True, index=True)

    version = db.relationship("EbookVersion", back_populates="media")
