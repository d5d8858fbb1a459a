from contextlib import contextmanager
from flask import current_app
from ebook_service.extensions import db


@contextmanager
def transactional():
    """
    Run the enclosed block as one database transaction.

    Commits on success; on any exception the session is rolled back and
    the exception propagates, so no partial write is ever committed.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.debug("transaction rolled back", exc_info=True)
        raise
