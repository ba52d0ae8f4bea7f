import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from tutorbase.core import config


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL")

engine = create_engine(DATABASE_URL, echo=config.SQL_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_availability_schema_checked = False
_bond_schema_checked = False
_rating_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_availability_schema() -> None:
    global _availability_schema_checked

    if _availability_schema_checked:
        return

    with _schema_lock:
        if _availability_schema_checked:
            return

        inspector = inspect(engine)

        if 'tutor_availability' not in inspector.get_table_names():
            _availability_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('tutor_availability')}
        migration_steps = [
            ('created_at', 'ALTER TABLE tutor_availability ADD COLUMN created_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_tutor_availability_date ON tutor_availability(date, start_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_tutor_availability_tutor_date ON tutor_availability(tutor_id, date)')
            )

        _availability_schema_checked = True


def ensure_bond_schema() -> None:
    global _bond_schema_checked

    if _bond_schema_checked:
        return

    with _schema_lock:
        if _bond_schema_checked:
            return

        table_names = set(inspect(engine).get_table_names())

        with engine.begin() as connection:
            if 'bond_requests' in table_names:
                connection.execute(
                    text('CREATE INDEX IF NOT EXISTS idx_bond_requests_pair ON bond_requests(parent_id, child_id)')
                )
                connection.execute(
                    text('CREATE INDEX IF NOT EXISTS idx_bond_requests_child_status ON bond_requests(child_id, status)')
                )

        _bond_schema_checked = True


def ensure_rating_schema() -> None:
    global _rating_schema_checked

    if _rating_schema_checked:
        return

    with _schema_lock:
        if _rating_schema_checked:
            return

        if 'lesson_ratings' not in inspect(engine).get_table_names():
            _rating_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_lesson_ratings_student ON lesson_ratings(student_id, created_at)')
            )

        _rating_schema_checked = True
