from curatarr.routers.config import router as config_router
from curatarr.routers.media_server import router as media_server_router
from curatarr.routers.rules import router as rules_router

__all__ = ["config_router", "media_server_router", "rules_router"]
