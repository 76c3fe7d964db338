"""Operational endpoints."""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from friends_directory.api.dependencies import get_service
from friends_directory.core.config import settings
from friends_directory.directory.service import DirectoryService

router = APIRouter(tags=["admin"])


@router.get("/health")
async def healthcheck(service: DirectoryService = Depends(get_service)) -> Dict[str, str]:
    """Liveness probe including store reachability."""

    reachable = await service.store.ping()
    return {
        "status": "ok" if reachable else "degraded",
        "environment": settings.ENVIRONMENT,
        "store": service.store.name,
    }


@router.get("/metrics")
async def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
