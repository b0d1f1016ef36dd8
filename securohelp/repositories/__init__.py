"""Repositories: one per entity, each wrapping a SQLAlchemy ``Session``.

Repositories never commit; the calling service owns the transaction.
"""

from securohelp.repositories.cases import CaseFilters, CaseRepository  # noqa: F401
from securohelp.repositories.clients import ClientRepository  # noqa: F401
from securohelp.repositories.history import StatusHistoryRepository  # noqa: F401
from securohelp.repositories.statuses import CaseStatusRepository  # noqa: F401
from securohelp.repositories.users import UserRepository  # noqa: F401
