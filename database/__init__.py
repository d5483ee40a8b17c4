from . import audit_models, auth_models, automation_models, care_models, finance_models  # noqa: F401
from .config import DatabaseConfig
from .manager import DatabaseManager
from .models import Base

__all__ = ["Base", "DatabaseConfig", "DatabaseManager"]
