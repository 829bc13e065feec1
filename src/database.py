import os
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from dotenv import load_dotenv
from asyncpg import Connection
from uuid import uuid4
from sqlalchemy import JSON, Column, String, func, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

load_dotenv()

POSTGRES_USER = os.getenv("POSTGRES_USER")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD")
POSTGRES_DB = os.getenv("POSTGRES_DB_URL")

class Base(DeclarativeBase): pass

postgres_file_name = f"{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_DB}"

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{postgres_file_name}"
)

class FixedConnection(Connection):
    def _get_unique_id(self, prefix: str) -> str:
        return f'__asyncpg_{prefix}_{uuid4()}__'


# pgbouncer in transaction mode cannot reuse prepared statements
connect_args = {}
if DATABASE_URL.startswith("postgresql+asyncpg"):
    connect_args = {
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
        "connection_class": FixedConnection,
    }

engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    connect_args=connect_args,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_session():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

#ORM

Document = JSON().with_variant(JSONB(), "postgresql")


class TournamentORM(Base):
    __tablename__ = "tournaments"

    id         = Column(String, primary_key=True)
    mode       = Column(String, nullable=False, default="free")  # free | fixed-pairs
    config     = Column(Document, nullable=False)   # TournamentConfig.to_dict()
    matches    = Column(Document, nullable=False)   # list of Match.to_dict()
    created_at = Column(DateTime(timezone=True), server_default=func.now())
