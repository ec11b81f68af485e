from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

# Ranked-conditions history; scripts may point elsewhere via `database_url`
DATABASE_URL = "sqlite:///powder_history.db"

Base = declarative_base()

def _build_engine(database_url: str):
    # Snapshots can be written from a different thread than the one that opened the connection
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args, echo=False)

engine = _build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def _create_tables(bind):
    # Registers ConditionsHistory with Base.metadata
    from bc_powder_app.data_layer import models  # noqa: F401
    Base.metadata.create_all(bind=bind)

def session_factory(database_url: str):
    """Creates the tables in `database_url` and returns a sessionmaker bound to it."""
    if database_url == DATABASE_URL:
        init_db()
        return SessionLocal

    other_engine = _build_engine(database_url)
    _create_tables(other_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=other_engine)

def init_db():
    _create_tables(engine)

def get_db():
    """Yields a session on the default database and closes it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
