"""
API routes, mounted under API_API_PREFIX (default /api).

Device traffic (heartbeats, voice upload, audio playback) is unauthenticated;
every other router requires a bearer token.
"""

from fastapi import APIRouter

from .endpoints import (
    analytics,
    auth,
    branches,
    complaints,
    contacts,
    deployments,
    devices,
    heartbeats,
    recordings,
    users,
    voice,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

api_router.include_router(heartbeats.router, prefix="/heartbeats", tags=["heartbeats"])
api_router.include_router(heartbeats.submit_router, tags=["heartbeats"])

api_router.include_router(devices.router, prefix="/devices", tags=["devices"])

api_router.include_router(branches.router, prefix="/branches", tags=["branches"])

api_router.include_router(deployments.router, prefix="/deployments", tags=["deployments"])

api_router.include_router(users.router, prefix="/users", tags=["users"])

api_router.include_router(recordings.router, prefix="/recordings", tags=["recordings"])
api_router.include_router(voice.router, tags=["recordings"])

api_router.include_router(complaints.router, prefix="/complaints", tags=["complaints"])

api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])

api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
