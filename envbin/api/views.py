import logging
import os

from flask import Blueprint, Response, jsonify, request, url_for

from envbin.extensions import faults
from envbin.faults.errors import ParseError
from envbin.faults.settings import parse_non_negative_int
from envbin.observability.metrics import metrics_collector

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")

# os._exit() takes a C int.
MAX_EXIT_CODE = 2**31 - 1

# endpoint -> (methods, query parameter) for the route listing
CONTROL_ROUTES = {}


def control(rule, param="value", methods=("POST",)):
    """Register a control route and record it for the API listing."""

    def decorator(view):
        endpoint = view.__name__
        CONTROL_ROUTES[f"{api.name}.{endpoint}"] = (tuple(methods), param)
        return api.route(rule, endpoint=endpoint, methods=list(methods))(
            view
        )

    return decorator


def text(body, status=200):
    return Response(body, status=status, mimetype="text/plain")


def parse_error(error):
    logger.info(
        "Rejected control value",
        extra={"setting": error.field, "value": error.raw},
    )
    return text(f"{error}\n", 400)


def update(setting, message):
    """Apply ?value= to a setting and echo it with message."""
    try:
        value = faults.settings.set(setting, request.args.get("value"))
    except ParseError as e:
        return parse_error(e)

    metrics_collector.record_setting_change(setting, value)

    return text(message.format(format_value(value)))


def format_value(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@control("/delay")
def delay():
    """Time to first byte, in seconds."""
    return update("delay", "Delay set to {}\n")


@control("/bandwidth")
def bandwidth():
    """Response rate ceiling in bytes/second."""
    return update("bandwidth", "Bandwidth set to {} bytes/s\n")


@control("/errorrate")
def error_rate():
    """Proportion of requests answered with a 500."""
    return update("error_rate", "Error rate set to {}\n")


@control("/cpu")
def cpu():
    """Logical cores worth of CPU to burn."""
    return update("cpu_target", "CPU usage set to {}\n")


@control("/health")
def health():
    return update("healthy", "Health check set to {}\n")


@control("/liveness")
def liveness():
    return update("live", "Liveness check set to {}\n")


@control("/allocate")
def allocate():
    """Allocate (and use) memory that is never released."""
    try:
        nbytes = parse_non_negative_int(
            "allocate", request.args.get("value"), minimum=1
        )
    except ParseError as e:
        return parse_error(e)

    pool_bytes = faults.pool.allocate(nbytes)
    metrics_collector.record_allocation(nbytes, pool_bytes)

    return text(f"Allocating {nbytes} bytes\n")


@control("/exit", param="code")
def exit_process():
    """Answer, then terminate the process with the given exit code."""
    try:
        code = parse_non_negative_int(
            "code", request.args.get("code"), maximum=MAX_EXIT_CODE
        )
    except ParseError as e:
        return parse_error(e)

    logger.warning("Exit requested", extra={"code": code})

    response = text(f"Exiting {code}\n")
    response.call_on_close(lambda: os._exit(code))

    return response


@control("/settings", param=None, methods=("GET",))
def settings():
    snapshot = faults.settings.snapshot()
    snapshot["allocated_bytes"] = faults.pool.total_bytes
    snapshot["allocated_blocks"] = len(faults.pool)
    return jsonify(snapshot)


@api.route("/", defaults={"path": ""}, methods=["GET", "POST"])
@api.route("/<path:path>", methods=["GET", "POST"])
def listing(path):
    """List the control routes, one per line."""
    lines = []
    for endpoint, (methods, param) in CONTROL_ROUTES.items():
        rule = url_for(endpoint)
        query = f"?{param}=<{param}>" if param else ""
        for method in methods:
            lines.append(f"{method} {rule}{query}\n")

    return text("".join(lines))
