from collections.abc import Generator

from fastapi import Request
from sqlalchemy.future import Engine
from sqlmodel import Session, SQLModel, create_engine

# Table models must be imported so their metadata is registered
from . import models  # noqa: F401


def create_db_engine(database_url: str) -> Engine:
    """Create an engine configured for the kind of database in use."""
    connect_args: dict[str, bool] = {}
    engine_kwargs: dict[str, int | bool] = {}

    # Configure connection args based on database type
    if "sqlite" in database_url:
        # Sessions are used from FastAPI's threadpool
        connect_args["check_same_thread"] = False
    elif "postgresql" in database_url:
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 10
        engine_kwargs["max_overflow"] = 20

    return create_engine(
        database_url,
        echo=False,
        connect_args=connect_args,
        **engine_kwargs,
    )


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


def get_session(request: Request) -> Generator[Session, None, None]:
    """Yield a session bound to the application's engine."""
    with Session(request.app.state.engine) as session:
        yield session
