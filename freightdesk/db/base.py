"""
Declarative base shared by every ORM model.
"""

from __future__ import annotations

import uuid

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Models annotate plain ``Column`` attributes rather than ``Mapped[...]``.
    __allow_unmapped__ = True


def new_id() -> str:
    """32-char lowercase hex identifier used as every primary key."""
    return uuid.uuid4().hex
