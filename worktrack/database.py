from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from worktrack.config.settings import settings

DATABASE_URL = settings.DATABASE_URL


def _engine_options(url: str) -> dict:
    if url.startswith("postgresql"):
        # If you're using PostgreSQL on Render or similar, keep sslmode=require
        return {"connect_args": {"sslmode": "require"}}
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            options["poolclass"] = StaticPool
        return options
    return {}


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# ✅ This is required to be imported wherever DB session is needed
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables and seed the access levels"""
    from worktrack import models  # noqa: F401  registers every mapper on Base
    from worktrack.models.user import AccessLevel

    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    db = Session(bind=bind)
    try:
        for level_id, name in AccessLevel.DEFAULTS:
            if db.get(AccessLevel, level_id) is None:
                db.add(AccessLevel(id=level_id, name=name))
        db.commit()
    finally:
        db.close()
