from sqlalchemy.exc import SQLAlchemyError
from app.db.base import Base
from app.db.session import engine, SessionLocal
import logging

logger = logging.getLogger(__name__)

__all__ = ["engine", "SessionLocal", "init_db"]


def init_db(bind=None):
    """
    Initialize database by creating all tables.
    This function imports all models to ensure they are registered with SQLAlchemy.
    """
    try:
        # Import all models here so every table is registered on Base.metadata
        from app.db.models.order import Order, RawMaterial, InstanceGroup
        from app.db.models.component import Component, ComponentProcess, ComponentRawMaterial
        from app.db.models.work_order import (
            WorkOrder, WorkOrderComponent, WorkOrderMaterial,
            ProcessStatus, ProcessMaterialUsage, WorkOrderStage
        )

        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Database error during initialization: {str(e)}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error during database initialization: {str(e)}", exc_info=True)
        raise
