from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # FastAPI may touch the session from a worker thread
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine) -> None:
    # Ensure models are registered on Base before create_all
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    """Yield a session bound to the engine the app was created with."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def save(session, row):
    """Insert `row` and return it refreshed with server defaults."""
    session.add(row)
    session.commit()
    session.refresh(row)
    return row
