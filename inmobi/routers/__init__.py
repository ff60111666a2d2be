"""
API routers for the Inmobi service.
"""

from inmobi.routers.auth import router as auth_router
from inmobi.routers.properties import router as properties_router
from inmobi.routers.user import router as user_router
from inmobi.routers.messages import router as messages_router
from inmobi.routers.tours import router as tours_router
from inmobi.routers.market import router as market_router
from inmobi.routers.payments import router as payments_router
from inmobi.routers.assistant import router as assistant_router
from inmobi.routers.seo import router as seo_router
from inmobi.routers.i18n import router as i18n_router
from inmobi.routers.dashboards import router as dashboards_router
from inmobi.routers.images import router as images_router
from inmobi.routers.notifications import router as notifications_router

__all__ = [
    "auth_router",
    "properties_router",
    "user_router",
    "messages_router",
    "tours_router",
    "market_router",
    "payments_router",
    "assistant_router",
    "seo_router",
    "i18n_router",
    "dashboards_router",
    "images_router",
    "notifications_router",
]
