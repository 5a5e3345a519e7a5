"""Monotonic counters backing product and order code allocation."""

from sqlalchemy import Column, Integer, String

from backoffice.db.base import Base


class CodeSequence(Base):
    __tablename__ = "code_sequences"

    name = Column(String(32), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
