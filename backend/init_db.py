#!/usr/bin/env python3
# backend/init_db.py
"""
Create the portfolio tracker schema without Alembic.

Builds the ``portfolios`` and ``transactions`` tables (with the
``transactiontype`` / ``investmenttype`` enums on PostgreSQL) straight from
the ORM models against DATABASE_URL. Meant for a throwaway development
database; anything long-lived should run ``alembic upgrade head`` so the
revision table stays in sync. Existing tables are left as they are.

Run from the repository root or from backend/:
    python backend/init_db.py
"""
import sys
from pathlib import Path

# portfolio_tracker lives next to this file
sys.path.insert(0, str(Path(__file__).parent))

from portfolio_tracker.config import settings
from portfolio_tracker.database import engine
from portfolio_tracker.models import Base


def init_db() -> None:
    tables = sorted(Base.metadata.tables)
    print(f"Creating {', '.join(tables)} on {engine.dialect.name} ({settings.environment})...")
    Base.metadata.create_all(bind=engine)
    print("Schema ready.")


if __name__ == "__main__":
    init_db()
