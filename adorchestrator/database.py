"""AdOrchestrator — Database Engine & Session Factory.

SQLite is the local/test fallback; any other URL is treated as a pooled
server database (Postgres in production).
"""

from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlmodel import SQLModel, Session, create_engine

from adorchestrator.config import settings
from adorchestrator.core.logging import get_logger

logger = get_logger("database")


def describe_database(url: str) -> str:
    """Backend name and URL with the password hidden, for logs."""
    parsed = make_url(url)
    backend = "SQLite" if parsed.get_backend_name() == "sqlite" else "PostgreSQL"
    return f"{backend} ({parsed.render_as_string(hide_password=True)})"


def engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.database_echo}
    if make_url(url).get_backend_name() == "sqlite":
        # Request handlers and the scheduler share connections across threads.
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_pre_ping=True,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_recycle=settings.database_pool_recycle,
        )
    return options


db_url = settings.effective_database_url
engine = create_engine(db_url, **engine_options(db_url))
logger.info(f"Database engine ready: {describe_database(db_url)}")


def ping_database() -> bool:
    """True when the database answers ``SELECT 1``."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        return False
    return True


def init_db() -> None:
    """Create any missing tables."""
    # Table classes register themselves on SQLModel.metadata at import.
    import adorchestrator.models.asset_models  # noqa: F401
    import adorchestrator.models.brand_models  # noqa: F401
    import adorchestrator.models.campaign_models  # noqa: F401
    import adorchestrator.models.conversion_models  # noqa: F401
    import adorchestrator.models.data_source_models  # noqa: F401
    import adorchestrator.models.trigger_models  # noqa: F401
    import adorchestrator.models.usage_models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info(f"Database schema ready ({len(SQLModel.metadata.tables)} tables)")


def get_session():
    """Dependency — yields a DB session."""
    with Session(engine) as session:
        yield session
