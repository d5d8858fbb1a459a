from typing import Any, Callable, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ebook_service.extensions import db

T = TypeVar("T")


def lock_row(model: Type[T], pk_column, pk_value) -> T | None:
    """SELECT ... FOR UPDATE on a single row by primary key."""
    return db.session.execute(
        select(model).where(pk_column == pk_value).with_for_update()
    ).scalar_one_or_none()


def get_or_create_locked(model: Type[T], pk_column, pk_value, factory: Callable[[], T]) -> T:
    """
    Conditional insert-or-fetch that leaves the row locked.

    The insert runs inside a SAVEPOINT; if a concurrent transaction wins
    the race the unique violation only rolls back the savepoint and the
    winner's row is locked and returned instead.
    """
    row = lock_row(model, pk_column, pk_value)
    if row is not None:
        return row

    row = factory()
    try:
        with db.session.begin_nested():
            db.session.add(row)
    except IntegrityError:
        row = lock_row(model, pk_column, pk_value)
        if row is None:
            raise
    return row
