import platform
from importlib.metadata import PackageNotFoundError, version

from flask import Blueprint, Response, current_app, render_template

from envbin.extensions import faults
from envbin.page.host import host_info

page = Blueprint("page", __name__, template_folder="templates")


def envbin_version():
    try:
        return version("envbin")
    except PackageNotFoundError:
        return "dev"


def chunked(body, size):
    """Split the rendered page so throttling shows up incrementally."""
    data = body.encode("utf-8")
    for start in range(0, len(data), size):
        yield data[start:start + size]


@page.route("/", defaults={"path": ""})
@page.route("/<path:path>")
def status(path):
    body = render_template(
        "page/status.txt",
        version=envbin_version(),
        python_ver=platform.python_version(),
        start_time=current_app.config["START_TIME"],
        host=host_info(),
        settings=faults.settings.snapshot(),
        allocated_bytes=faults.pool.total_bytes,
    )

    size = max(1, current_app.config.get("STATUS_CHUNK_SIZE", 16))

    return Response(chunked(body, size), mimetype="text/plain")
