"""Import every model module so Base.metadata knows all tables."""

from docflow.db_base import Base
from docflow.models import user  # noqa: F401
from docflow.models import document  # noqa: F401
from docflow.ingestion.jobs import models as ingestion_job_models  # noqa: F401

__all__ = ["Base"]
