"""Database engine and session management."""

import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from rds_postgres.models import Base

load_dotenv()


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine from the given URL or DATABASE_URL."""
    return create_engine(database_url or os.environ["DATABASE_URL"], pool_pre_ping=True)


def get_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def ensure_table(engine: Engine) -> None:
    """Create the articles table if it doesn't exist."""
    Base.metadata.create_all(engine)
