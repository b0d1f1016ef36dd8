"""ORM models package: re-exports all models for Alembic auto-detection."""

from securohelp.models.user import User, UserRole  # noqa: F401
from securohelp.models.client import Client  # noqa: F401
from securohelp.models.insurance_company import InsuranceCompany  # noqa: F401
from securohelp.models.case_status import CaseStatus  # noqa: F401
from securohelp.models.case import Case  # noqa: F401
from securohelp.models.case_status_history import CaseStatusHistory  # noqa: F401
