# File: voicecrm/api/routes/health.py
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

from voicecrm.core.database.connection import ping

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(request: Request) -> Dict[str, Any]:
    """Liveness plus a database ping. Public."""
    database = "ok" if ping(request.app.state.session_factory) else "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": "voicecrm",
        "database": database,
        "transcriptionBackend": request.app.state.gateway.backend_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
