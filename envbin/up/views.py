from flask import Blueprint, Response

from envbin.extensions import faults

up = Blueprint("up", __name__)


def probe(ok):
    if ok:
        return Response("ok", status=200, mimetype="text/plain")
    return Response("error", status=500, mimetype="text/plain")


@up.get("/healthz")
def healthz():
    """Readiness style health check, controlled by /api/health."""
    return probe(faults.settings.healthy)


@up.get("/live")
def live():
    """Liveness check, controlled by /api/liveness."""
    return probe(faults.settings.live)
