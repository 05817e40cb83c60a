from sqlalchemy import create_engine, event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from app.config import settings

connect_args = {}
if settings.is_postgres:
    # Every statement gets the request deadline and the business timezone
    connect_args = {
        "options": (
            f"-c timezone={settings.TIMEZONE} "
            f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
        )
    }

# Create engine
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
    connect_args=connect_args,
)


if settings.is_postgres:
    @event.listens_for(engine, "connect")
    def set_timezone(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute(f"SET timezone='{settings.TIMEZONE}'")
        cursor.close()


# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def upsert(db: Session, table):
    """
    Dialect-specific INSERT supporting ON CONFLICT DO UPDATE.
    Production runs on PostgreSQL; SQLite is used by the test suite.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise ValueError(f"Unsupported database dialect for upsert: {dialect}")
