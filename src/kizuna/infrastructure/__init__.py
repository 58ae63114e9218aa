"""Infrastructure layer — database engine, schema, migrations, repositories.

This layer depends on stdlib and third-party libs (SQLAlchemy, Alembic).
It must never import from domain, services, commands, or output.
Repositories exchange plain row dicts; the service layer maps them to
domain entities.
"""
