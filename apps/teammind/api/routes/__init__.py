"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter) lives here; every sub-router imports what it
needs from this package.
"""

import os

from fastapi import APIRouter
from slowapi import Limiter
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
limiter = Limiter(key_func=get_remote_address, enabled=not IS_TEST_ENV)

# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from teammind.api.routes.health import router as health_router  # noqa: E402
from teammind.api.routes.profiles import router as profiles_router  # noqa: E402
from teammind.api.routes.fields import router as fields_router  # noqa: E402
from teammind.api.routes.matches import router as matches_router  # noqa: E402
from teammind.api.routes.placement import router as placement_router  # noqa: E402
from teammind.api.routes.availability import router as availability_router  # noqa: E402
from teammind.api.routes.feed import router as feed_router  # noqa: E402
from teammind.api.routes.chat import router as chat_router  # noqa: E402

router = APIRouter()
router.include_router(health_router)
router.include_router(profiles_router)
router.include_router(fields_router)
router.include_router(matches_router)
router.include_router(placement_router)
router.include_router(availability_router)
router.include_router(feed_router)
router.include_router(chat_router)
