"""Database configuration and initialization."""
from typing import Optional

from flask import Flask, current_app
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, scoped_session, sessionmaker, Session

# Create SQLAlchemy base
Base = declarative_base()


class Database:
    """
    Explicitly constructed database handle bound to one Flask app.

    Owns the engine and the thread-local session registry. Opened by
    init_app() when the app is created and released by dispose().
    """

    def __init__(self, app: Optional[Flask] = None):
        self.engine: Optional[Engine] = None
        self.session_factory: Optional[sessionmaker] = None
        self.session: Optional[scoped_session] = None

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Create engine and session registry from app config."""
        database_uri = app.config['SQLALCHEMY_DATABASE_URI']
        echo = app.config.get('SQLALCHEMY_ECHO', False)

        if database_uri.startswith('sqlite'):
            self.engine = create_engine(
                database_uri,
                echo=echo,
                connect_args={'check_same_thread': False, 'timeout': 30},
            )
            _use_immediate_transactions(self.engine)
        else:
            self.engine = create_engine(
                database_uri,
                echo=echo,
                pool_pre_ping=True,  # Enable connection health checks
                pool_size=10,
                max_overflow=20
            )

        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.session = scoped_session(self.session_factory)

        if not hasattr(app, 'extensions'):
            app.extensions = {}
        app.extensions['database'] = self

        # Register teardown
        @app.teardown_appcontext
        def shutdown_session(exception=None):
            """Close database session and rollback on error."""
            if exception:
                self.session.rollback()
            self.session.remove()

    def create_all(self) -> None:
        """Create every table registered on Base."""
        import pos.models  # noqa: F401  (registers mappers)
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        import pos.models  # noqa: F401
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Release pooled connections (process shutdown)."""
        if self.session is not None:
            self.session.remove()
        if self.engine is not None:
            self.engine.dispose()


def _use_immediate_transactions(engine: Engine) -> None:
    """
    Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, so two checkouts that both
    read before writing would deadlock on lock upgrade. BEGIN IMMEDIATE makes
    writers queue on the busy timeout instead.
    """

    @event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, 'begin')
    def _on_begin(conn):
        conn.exec_driver_sql('BEGIN IMMEDIATE')


def get_database() -> Database:
    """Get the database handle bound to the current app."""
    return current_app.extensions['database']


def get_session() -> Session:
    """Get database session for the current thread."""
    return get_database().session
