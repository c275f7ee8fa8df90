"""Process startup: logging and schema"""

from bizcredit.config import settings
from bizcredit.infrastructure.database.models import Base
from bizcredit.infrastructure.database.session import engine
from bizcredit.infrastructure.observability.logging import setup_logging


def init_app() -> None:
    """Configure structured logging and create missing tables"""
    setup_logging(settings.log_level)
    Base.metadata.create_all(bind=engine)
