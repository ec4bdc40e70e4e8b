"""Alembic migration scripts for both storage engines."""
