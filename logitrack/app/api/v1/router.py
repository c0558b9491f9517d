"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from logitrack.app.api.v1.endpoints import (
    auth, statuses, packages, escalations,
    notifications, badges, dashboard, reference
)

router = APIRouter()

router.include_router(auth.router)

# Status catalog and packages
router.include_router(statuses.router)
router.include_router(packages.router)

# Driver escalations and the notification inbox
router.include_router(escalations.router)
router.include_router(notifications.router)

# Counters
router.include_router(badges.router)
router.include_router(dashboard.router)

# Clients, companies, drivers
router.include_router(reference.router)
