# app/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models in the Recurring Meeting Materializer.

    Models register themselves on `Base.metadata` when their module is
    imported; `app.db.session` imports all of them before creating the schema.
    """
    pass
