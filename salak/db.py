import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from . import tables

log = logging.getLogger(__name__)


def make_engine(url: str, echo: bool = False) -> Engine:
    if 'sqlite' in url:
        args = {"check_same_thread": False}
    else:
        args = {}
    return create_engine(url, echo=echo, connect_args=args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    """Create any missing tables.

    This is a synchronous call"""
    tables.metadata.create_all(bind=engine)
    log.info("tables created or verified")
