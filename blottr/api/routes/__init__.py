from __future__ import annotations

from blottr.api.routes.auth import router as auth_router
from blottr.api.routes.contact_inquiries import router as contact_inquiries_router
from blottr.api.routes.health import router as health_router

__all__ = ["auth_router", "contact_inquiries_router", "health_router"]
