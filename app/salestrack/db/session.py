import time

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.salestrack.core.config import settings
from app.salestrack.core.db_timing import add_db_time, is_db_timer_active

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    pool_pre_ping=not _is_sqlite,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)


if _is_sqlite:

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # sale_line_items rely on ON DELETE CASCADE
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@event.listens_for(engine, "before_cursor_execute")
def _start_query_timer(conn, cursor, statement, parameters, context, executemany):
    if not is_db_timer_active():
        return
    conn.info.setdefault("query_start_times", []).append(time.perf_counter())


@event.listens_for(engine, "after_cursor_execute")
def _stop_query_timer(conn, cursor, statement, parameters, context, executemany):
    starts = conn.info.get("query_start_times")
    if not starts:
        return
    add_db_time((time.perf_counter() - starts.pop()) * 1000)


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=True, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
