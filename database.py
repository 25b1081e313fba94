"""
Database engine, sessions and the per-application context
"""
import logging
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models import Base

logger = logging.getLogger(__name__)

EXTENSION_KEY = "expense_tracker"


class Database:
    """Owns the SQLAlchemy engine and hands out short-lived sessions."""

    def __init__(self, url):
        self.url = url
        connect_args = {}
        engine_kwargs = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            if ":memory:" in url or url == "sqlite://":
                # One shared connection, otherwise every checkout sees an empty db
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True
        self.engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

    def init_db(self):
        Base.metadata.create_all(self.engine)
        logger.info("Database ready at %s", make_url(self.url).render_as_string(hide_password=True))

    @contextmanager
    def session(self):
        """Session scope: commit on success, roll back on any error."""
        session = self.Session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self):
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self):
        self.engine.dispose()


class TrackerContext:
    """Everything a request needs, built once by create_app."""

    def __init__(self, db, store, upload_folder, max_page_size=None):
        self.db = db
        self.store = store
        self.upload_folder = upload_folder
        self.max_page_size = max_page_size


def get_context() -> TrackerContext:
    return current_app.extensions[EXTENSION_KEY]
