"""Allocation of never-reused, human-readable entity codes."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from backoffice.db.models.code_sequence import CodeSequence


def next_value(session: Session, name: str) -> int:
    """Bump and return the counter called ``name``.

    Must run inside the caller's transaction: the UPDATE holds the row
    lock until commit, and a rollback gives the number back.
    """
    result = session.execute(
        update(CodeSequence)
        .where(CodeSequence.name == name)
        .values(last_value=CodeSequence.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.add(CodeSequence(name=name, last_value=1))
        session.flush()
    return session.scalar(
        select(CodeSequence.last_value).where(CodeSequence.name == name)
    )


def format_code(prefix: str, value: int, width: int) -> str:
    """Render ``value`` as ``<prefix><zero padded number>``."""
    return f"{prefix}{value:0{width}d}"
