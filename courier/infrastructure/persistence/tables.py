"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import Column, DateTime, Index, Integer, MetaData, String, Table
from sqlalchemy.types import JSON

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# RESOURCES TABLE
# ============================================================================
# Every resource kind shares one table; the body holds the JSON form of the
# model without its id and version.
resources_table = Table(
    "resources",
    metadata,
    Column("type", String(64), primary_key=True),  # Resource class name
    Column("id", String, primary_key=True),
    Column("version", Integer, nullable=False),
    Column("body", JSON, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

Index("idx_resources_type", resources_table.c.type)
