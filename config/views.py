"""
Health check views for monitoring and load balancers
"""
from urllib.parse import urlparse

import redis
from django.conf import settings
from django.db import connection
from django.http import JsonResponse

SERVICE_NAME = "tournament-service"
BEAT_LOCK_KEY = "celerybeat-schedule"


def _redis_client():
    parsed = urlparse(settings.REDIS_URL)
    return redis.Redis(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        db=int(parsed.path.lstrip("/") or 0),
        username=parsed.username,
        password=parsed.password,
        ssl=parsed.scheme in ("rediss", "rediss+ssl", "tls"),
        socket_connect_timeout=2,
    )


def _check_database():
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        return {"status": "connected", "error": None}
    except Exception as e:
        return {"status": "disconnected", "error": str(e)}


def _check_redis():
    try:
        _redis_client().ping()
        return {"status": "connected", "error": None}
    except Exception as e:
        return {"status": "disconnected", "error": str(e)}


def _check_celery_worker():
    """Workers answering a broadcast ping; these run the reconciliation ticks."""
    try:
        from config.celery import app

        active_workers = app.control.inspect(timeout=2).active()
    except Exception as e:
        return {"status": "unknown", "worker_count": 0, "workers": [], "error": str(e)}
    if not active_workers:
        return {"status": "not_running", "worker_count": 0, "workers": [], "error": "No active workers found"}
    return {
        "status": "running",
        "worker_count": len(active_workers),
        "workers": list(active_workers.keys()),
        "error": None,
    }


def _check_celery_beat():
    try:
        if _redis_client().exists(BEAT_LOCK_KEY):
            return {"status": "running", "error": None}
        return {"status": "unknown", "error": "Beat lock not found (may still be starting)"}
    except Exception as e:
        return {"status": "unknown", "error": str(e)}


def healthz(request):
    """Liveness: 200 while the database answers, 500 otherwise."""
    db_check = _check_database()
    body = {"status": "healthy", "service": SERVICE_NAME, "database": db_check["status"]}
    if db_check["status"] == "connected":
        return JsonResponse(body, status=200)
    body.update(status="unhealthy", error=db_check["error"])
    return JsonResponse(body, status=500)


def readyz(request):
    """Readiness: 200 when database, Redis and a Celery worker are all up, 503 otherwise."""
    checks = {
        "database": _check_database(),
        "redis": _check_redis(),
        "celery_worker": _check_celery_worker(),
        "celery_beat": _check_celery_beat(),
    }
    worker = checks["celery_worker"]
    all_ready = (
        checks["database"]["status"] == "connected"
        and checks["redis"]["status"] == "connected"
        and worker["status"] == "running"
    )
    response_data = {
        "status": "ready" if all_ready else "not_ready",
        "service": SERVICE_NAME,
        "checks": {
            "database": checks["database"]["status"],
            "redis": checks["redis"]["status"],
            "celery_worker": {
                "status": worker["status"],
                "worker_count": worker["worker_count"],
                "workers": worker["workers"],
            },
            "celery_beat": checks["celery_beat"]["status"],
        },
    }
    errors = {name: check["error"] for name, check in checks.items() if check["error"]}
    if errors:
        response_data["errors"] = errors
    return JsonResponse(response_data, status=200 if all_ready else 503)
