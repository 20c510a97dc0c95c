"""Top-level API router: mounts all domain routers under /api/v1."""

from fastapi import APIRouter

from ivcrush.api.routes import earnings, metrics, plays, strategy, system

api_router = APIRouter()
api_router.include_router(earnings.router, prefix="/earnings", tags=["earnings"])
api_router.include_router(plays.router, prefix="/plays", tags=["plays"])
api_router.include_router(strategy.router, prefix="/strategy", tags=["strategy"])
api_router.include_router(metrics.router, prefix="/metrics", tags=["metrics"])
api_router.include_router(system.router, prefix="/system", tags=["system"])
