from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from redirector_app.database.connection import Base


class Redirect(Base):
    """
    Redirect record.

    `key` and `slug` carry unique constraints: the database, not the
    application, guarantees that two issuances never share an identifier.
    Only `destination` is ever updated; `token` is written once.
    """
    __tablename__ = "redirects"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # unique=True also creates the index
    key = Column(String(32), unique=True, nullable=False, index=True)
    slug = Column(String(64), unique=True, nullable=True, index=True)
    destination = Column(String, nullable=False)
    token = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
