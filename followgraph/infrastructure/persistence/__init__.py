"""Persistence: database engine/session, ORM models, and repositories."""
