# core/views.py
from django.conf import settings
from django.db import connections
from django.db.utils import OperationalError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from updates.models import UpdateRun


def _last_feeder_run():
    run = UpdateRun.objects.order_by("-started_at").first()
    if run is None:
        return None
    return {"ok": run.ok, "started_at": run.started_at, "items_inserted": run.items_inserted}


class HealthCheckView(APIView):
    """
    GET /api/health/

    "ok" needs the database; a missing blob store or a failed last feeder
    run only degrade the answer.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        try:
            connections["default"].cursor()
        except OperationalError:
            return Response({"status": "down", "db": False}, status=503)

        storage_ok = bool(settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY)
        feeder = _last_feeder_run()
        healthy = storage_ok and (feeder is None or feeder["ok"])

        return Response(
            {
                "status": "ok" if healthy else "degraded",
                "db": True,
                "storage": storage_ok,
                "feeder": feeder,
                "team_max_size": settings.PORTAL["TEAM_MAX_SIZE"],
            }
        )
