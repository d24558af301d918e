"""Database connection helpers."""

from collections.abc import Sequence
from functools import cache
from typing import Any

from pydantic import BaseModel
from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from blockfees.helpers.config import get_database_url


Base = declarative_base()


@cache
def get_async_engine() -> AsyncEngine:
    """Create the async engine on first use.

    Raises:
        ValueError: If the POSTGRE_* environment variables are not set
    """
    return create_async_engine(get_database_url(), echo=False)


@cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine."""
    return async_sessionmaker(
        get_async_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create all tables registered on Base if they don't exist.

    Args:
        engine: Engine to use, defaults to the shared engine
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def build_upsert_statement(
    db_model_class: type[Any],
    data: list[dict[str, Any]],
) -> Any:
    """Build an INSERT ... ON CONFLICT (primary key) DO UPDATE statement.

    Args:
        db_model_class: The SQLAlchemy model class (e.g., BlockFeeDB)
        data: Rows to insert, all with the same keys

    Returns:
        PostgreSQL insert statement

    Raises:
        ValueError: If the database model class cannot be inspected
    """
    mapper = inspect(db_model_class)
    if not mapper:
        msg = f"Cannot inspect {db_model_class}"
        raise ValueError(msg)
    pk_columns = [col.name for col in mapper.primary_key]

    stmt = pg_insert(db_model_class).values(data)

    # Build the update dict (all columns except primary keys)
    update_dict = {
        col: stmt.excluded[col] for col in data[0] if col not in pk_columns
    }

    return stmt.on_conflict_do_update(
        index_elements=pk_columns,
        set_=update_dict,
    )


async def upsert_models[DBModelType](
    db_model_class: type[DBModelType],
    pydantic_models: Sequence[BaseModel],
    extra_fields: dict[str, Any] | None = None,
    session: AsyncSession | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> None:
    """Upsert multiple models using PostgreSQL INSERT ... ON CONFLICT DO UPDATE.

    This function uses atomic database-level upsert to avoid race conditions
    in concurrent environments.

    Args:
        db_model_class: The SQLAlchemy model class (e.g., BlockFeeDB)
        pydantic_models: List of Pydantic model instances with data to upsert
        extra_fields: Additional fields not in the Pydantic model
        session: Existing session to execute in; committed but not closed
        session_factory: Factory for a fresh session when no session is given,
            defaults to the shared factory

    Examples:
        await upsert_models(
            db_model_class=BlockFeeDB,
            pydantic_models=[record1, record2, record3],
        )

    Raises:
        ValueError: If the database model class cannot be inspected
    """
    data = [model.model_dump() for model in pydantic_models]
    if not data:
        return

    if extra_fields:
        for item in data:
            item.update(extra_fields)

    stmt = build_upsert_statement(db_model_class, data)

    if session is not None:
        await _execute_and_commit(session, stmt)
        return

    factory = session_factory or get_session_factory()
    async with factory() as new_session:
        await _execute_and_commit(new_session, stmt)


async def _execute_and_commit(session: AsyncSession, stmt: Any) -> None:
    try:
        await session.execute(stmt)
        await session.commit()
    except Exception:
        await session.rollback()
        raise


__all__ = [
    "Base",
    "build_upsert_statement",
    "create_tables",
    "get_async_engine",
    "get_session_factory",
    "upsert_models",
]
