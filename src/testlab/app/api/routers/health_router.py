# app/api/routers/health_router.py

from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, status

from ....application.services.test_suite_service import TestSuiteService
from ....infra.configs.app_config import settings
from ....infra.di.container import test_suite_service_dependency

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
    description="Check if the service is alive and responding.",
)
async def liveness_check() -> Dict[str, Any]:
    return {"status": "alive", "timestamp": datetime.now().isoformat()}


@router.get(
    "/ready",
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Check if stored test suites can be read.",
)
async def readiness_check(
    service: TestSuiteService = test_suite_service_dependency,
) -> Dict[str, Any]:
    suites = await service.list_suites()
    data_dir = Path(settings.data_dir)
    return {
        "status": "ready" if data_dir.exists() else "not_ready",
        "timestamp": datetime.now().isoformat(),
        "data_dir": str(data_dir),
        "data_dir_exists": data_dir.exists(),
        "test_suites_count": len(suites),
    }
