"""
Roster Kernel - persistence, logging, and error primitives shared by the
roster ingestion pipeline.

- SQLAlchemy declarative base and engine/session management
- Target-store ORM models (organizations, users, courses, enrollments)
- Structured JSON logging with run-scoped context
- Typed exception hierarchy with machine-readable codes
"""

__version__ = "0.1.0"
