import logging
import sys

from sqlalchemy import inspect

from app.core.config import settings
from app.db.database import init_db
from app.db.session import create_db_engine

logging.basicConfig(level=settings.LOG_LEVEL)


def main(database_url=None):
    """Create the work order engine tables; pass a URL to target another database"""
    bind = create_db_engine(database_url) if database_url else None
    print(f"Creating work order engine tables in {database_url or settings.DATABASE_URL}...")
    init_db(bind=bind)

    from app.db.database import engine
    tables = inspect(bind or engine).get_table_names()
    print(f"Database ready with {len(tables)} tables: {', '.join(sorted(tables))}")

if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
