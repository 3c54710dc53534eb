"""API v1 router aggregator."""

from fastapi import APIRouter

from app.api.v1 import analytics, app_settings, auth, feedback, health, reviews, seo, sharing

api_router = APIRouter()

# Health check
api_router.include_router(health.router, prefix="/health", tags=["health"])

# Authentication
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Review funnel
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])

# Business settings
api_router.include_router(app_settings.router, prefix="/app-settings", tags=["app-settings"])
api_router.include_router(app_settings.upload_router, prefix="/upload", tags=["app-settings"])

# Analytics
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])

# Sharing
api_router.include_router(sharing.router, tags=["sharing"])
api_router.include_router(seo.router, tags=["seo"])
