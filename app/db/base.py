"""
Declarative base shared by every ORM model.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Models annotate legacy ``Column`` attributes with plain Python types.
    __allow_unmapped__ = True
