"""Application entry point: wires settings, logging and the store."""

import logging

from sqlalchemy import Engine

from school_portal.core.config import settings
from school_portal.core.database import build_session_factory, engine, init_db
from school_portal.core.logging import configure_logging
from school_portal.services.remarks import RemarkGenerator
from school_portal.services.school import SchoolService
from school_portal.services.store import CollectionStore, SchoolRepository

logger = logging.getLogger(__name__)


def create_service(bind: Engine | None = None) -> SchoolService:
    """Create the school records service over the configured database."""
    configure_logging()
    bind = bind or engine
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    init_db(bind)
    store = CollectionStore(session_factory=build_session_factory(bind))
    return SchoolService(SchoolRepository(store))


def create_remark_generator() -> RemarkGenerator:
    """Remark generator configured from settings."""
    generator = RemarkGenerator()
    if not generator.api_key:
        logger.warning("GEMINI_API_KEY is not set; remarks will use the fallback text")
    return generator
