from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from chapter_api.core import config


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are opened and used from FastAPI's threadpool workers.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_account_schema_checked = False


def ensure_account_schema(bind=None) -> None:
    """Bring an existing ``accounts`` table up to date.

    Tables created before the profile columns existed get them added, and
    the case-insensitive email index is created if it is missing.
    """
    global _account_schema_checked

    bind = bind if bind is not None else engine

    if bind is engine and _account_schema_checked:
        return

    with _schema_lock:
        if bind is engine and _account_schema_checked:
            return

        inspector = inspect(bind)

        if 'accounts' not in inspector.get_table_names():
            return

        existing_columns = {column['name'] for column in inspector.get_columns('accounts')}
        migration_steps = [
            ('github', "ALTER TABLE accounts ADD COLUMN github VARCHAR DEFAULT ''"),
            ('linkedin', "ALTER TABLE accounts ADD COLUMN linkedin VARCHAR DEFAULT ''"),
            ('profile', "ALTER TABLE accounts ADD COLUMN profile VARCHAR DEFAULT ''"),
        ]

        with bind.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS uq_accounts_email_lower ON accounts (lower(email))')
            )

        if bind is engine:
            _account_schema_checked = True
