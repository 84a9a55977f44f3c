from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def make_session_factory(database_url: str):
    """Create the engine and tables for `database_url` and return a sessionmaker."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # Required for SQLite

    engine = create_engine(database_url, connect_args=connect_args)

    from draftbot.models import Lead  # noqa: F401

    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
