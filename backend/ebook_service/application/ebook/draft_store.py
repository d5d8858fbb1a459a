# ebook_service/application/ebook/draft_store.py
"""
Access to the single live document.

The draft row is global mutable state, so nothing outside this module
reads or writes it directly: writers go through lock_draft() inside a
transaction, readers through get_draft_content().
"""
from typing import Any, Tuple

from flask import current_app
from sqlalchemy import select

from ebook_service.domain.exceptions import NotFound
from ebook_service.extensions import db
from ebook_service.models.draft import EbookDraft


def document_slug() -> str:
    return current_app.config["EBOOK_DOCUMENT_SLUG"]


def _not_provisioned(slug: str) -> NotFound:
    return NotFound(f"Document '{slug}' is not provisioned")


def lock_draft(slug: str | None = None) -> EbookDraft:
    """Fetch the draft row with an exclusive row lock held until commit."""
    slug = slug or document_slug()
    draft = db.session.execute(
        select(EbookDraft)
        .where(EbookDraft.slug == slug)
        .with_for_update()
    ).scalar_one_or_none()

    if draft is None:
        raise _not_provisioned(slug)
    return draft


def get_draft(slug: str | None = None) -> EbookDraft:
    slug = slug or document_slug()
    draft = EbookDraft.query.filter_by(slug=slug).first()
    if draft is None:
        raise _not_provisioned(slug)
    return draft


def get_draft_content(slug: str | None = None) -> Any:
    content = get_draft(slug).content
    return content if content is not None else {}


def provision_draft(slug: str | None = None) -> Tuple[EbookDraft, bool]:
    """Create the document slot if missing. Idempotent."""
    slug = slug or document_slug()
    draft = EbookDraft.query.filter_by(slug=slug).first()
    if draft is not None:
        return draft, False

    draft = EbookDraft()
    draft.slug = slug
    draft.content = {}
    db.session.add(draft)
    db.session.commit()

    current_app.logger.info("Provisioned ebook document slot %r", slug)
    return draft, True
