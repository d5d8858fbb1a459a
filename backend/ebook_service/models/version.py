from ebook_service.extensions import db
from .base import BaseModel


class EbookVersion(BaseModel):
    __tablename__ = "ebook_versions"

    document_id = db.Column(
        db.String(36),
        db.ForeignKey("ebooks.id"),
        nullable=False,
        index=True,
    )

    kind = db.Column(db.String(20), nullable=False, index=True)
    # manual | published

    # Immutable pointer to the snapshot blob in object storage
    storage_key = db.Column(db.String(512), nullable=False, unique=True)

    label = db.Column(db.String(200), nullable=True)
    created_by = db.Column(db.String(64), nullable=True)

    document = db.relationship("EbookDraft", back_populates="versions")
    media = db.relationship(
        "EbookVersionMedia",
        back_populates="version",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.Index("idx_ebook_versions_doc_created", "document_id", "created_at"),
    )

    @property
    def media_keys(self):
        return sorted(m.media_key for m in self.media)
