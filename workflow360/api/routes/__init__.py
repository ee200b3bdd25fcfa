from workflow360.api.routes.auth import router as auth_router
from workflow360.api.routes.flows import router as flows_router

__all__ = ["auth_router", "flows_router"]
