from ebook_service.extensions import db
from .base import BaseModel


class EbookDraft(BaseModel):
    """
    The single live document of a slot. Only ever overwritten in place,
    and only through the locking helpers in application/ebook/draft_store.py.
    """
    __tablename__ = "ebooks"

    slug = db.Column(db.String(100), unique=True, nullable=False, index=True)
    content = db.Column(db.JSON, nullable=True)

    versions = db.relationship(
        "EbookVersion",
        back_populates="document",
        lazy="dynamic",
    )
