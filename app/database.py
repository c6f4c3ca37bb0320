from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()


def build_engine(db_url: str) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    Postgres (production):
      - sslmode=require   : enforce SSL when running in the cloud
      - pool_pre_ping=True: validate connections before using them

    SQLite (local runs and tests):
      - a single shared connection (StaticPool) so that an in-memory
        database survives across requests handled on different threads
    """
    if db_url.startswith("sqlite"):
        return create_engine(
            db_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # Append sslmode=require if it is not already present
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    return create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    FastAPI caches the dependency per request, so the auth guard and the
    route handler share one session (and one User instance).
    """
    with Session(engine) as session:
        yield session
