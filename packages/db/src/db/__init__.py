# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    ApplicationStatus,
    DocumentKind,
    Gender,
    GovernmentIdType,
    SsnMethod,
    UserRole,
)
from .models import Application, Document

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ApplicationStatus",
    "UserRole",
    "Gender",
    "GovernmentIdType",
    "SsnMethod",
    "DocumentKind",
    # Models
    "Application",
    "Document",
]
