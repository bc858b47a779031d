"""
Gestion de conexiones a la base de datos de estado (SQLAlchemy).

El estado de corridas de push (cursor + change-set) vive aqui para
sobrevivir entre invocaciones del proceso.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


# Base para modelos de SQLAlchemy
Base = declarative_base()


def _create_engine_args(database_url: str, echo: bool) -> dict:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    SQLite en memoria necesita una unica conexion compartida.
    """
    args: dict = {"echo": echo, "future": True}

    if database_url.startswith("sqlite"):
        args["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            args["poolclass"] = StaticPool
    else:
        args["pool_pre_ping"] = True  # Verifica conexion antes de usar

    return args


def create_state_engine(database_url: str, *, echo: bool = False) -> Engine:
    """
    Crea el engine y asegura que las tablas existan.
    """
    # Registrar modelos en Base.metadata antes de create_all
    from stocksync.infrastructure.database import models  # noqa: F401

    engine = create_engine(database_url, **_create_engine_args(database_url, echo))
    Base.metadata.create_all(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory para el engine dado."""
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
