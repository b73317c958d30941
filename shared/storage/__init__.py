"""
Storage abstractions for projector services.

Provides an async PostgreSQL client with binary COPY and
materialized view support.
"""

from .postgres import PostgresClient, PostgresConfig

__all__ = [
    "PostgresClient",
    "PostgresConfig",
]
