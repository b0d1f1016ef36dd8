"""API routes package: import all routers here for inclusion in the app."""

from securohelp.api.routes.case_statuses import router as case_statuses_router  # noqa: F401
from securohelp.api.routes.cases import router as cases_router  # noqa: F401
from securohelp.api.routes.dashboard import router as dashboard_router  # noqa: F401
