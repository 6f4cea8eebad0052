"""
Database connection and session management with centralized configuration.

This module provides database connectivity using the centralized configuration
system, with error handling and logging integration.
"""

from __future__ import annotations

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .config import DatabaseConfig, get_settings
from .logging import get_logger

logger = get_logger(__name__)


def create_database_engine(config: DatabaseConfig | None = None) -> Engine:
    """
    Create SQLAlchemy engine with proper configuration.

    Args:
        config: Database configuration (uses settings if None)

    Returns:
        Configured SQLAlchemy engine
    """
    if config is None:
        config = get_settings().database

    connection_url = config.get_connection_url()
    engine_options = config.get_engine_options()

    logger.info(f"Creating database engine for {config.backend} backend")
    logger.debug(f"Connection URL: {connection_url.split('@')[0]}@***")

    try:
        engine = create_engine(connection_url, **engine_options)
        logger.info("Database engine created successfully")
        return engine
    except Exception as e:
        logger.error(f"Failed to create database engine: {str(e)}")
        raise


def create_session_factory(engine: Engine | None = None) -> sessionmaker:
    """
    Create SQLAlchemy session factory.

    Example:
        >>> SessionLocal = create_session_factory()
        >>> with SessionLocal() as session:
        ...     pass
    """
    if engine is None:
        engine = create_database_engine()

    SessionLocal = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
    )

    logger.info("Session factory created successfully")
    return SessionLocal


def make_engine_and_session(connection_url: str | None = None) -> tuple[Engine, sessionmaker]:
    """
    Create engine and session factory from a URL or from settings.

    Example:
        >>> engine, SessionLocal = make_engine_and_session("sqlite:///./calendarapp.db")
    """
    if connection_url:
        engine = create_engine(connection_url, echo=False, future=True, pool_pre_ping=True)
        SessionLocal = sessionmaker(
            bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
        )
    else:
        engine = create_database_engine()
        SessionLocal = create_session_factory(engine)

    return engine, SessionLocal


def check_database_connection(engine: Engine) -> bool:
    """
    Borrow a pooled connection and run a trivial query.

    Returns:
        True if the database answered, False otherwise (the failure is logged)
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Database connected successfully")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {str(e)}")
        return False

