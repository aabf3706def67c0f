"""Host and process introspection for the status page."""

import logging
import os
import platform
import socket
import time

import psutil

logger = logging.getLogger(__name__)


def default_ip(probe_addr=("8.8.8.8", 53)):
    """
    IP of the interface holding the default route.

    Connecting a UDP socket selects a source address without sending
    any packets.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(probe_addr)
            return sock.getsockname()[0]
    except OSError as e:
        logger.warning("Could not determine default IP", extra={"error": str(e)})
        return "<unknown>"


def format_pow2(n):
    return f"{n >> 30}G"


def format_duration(seconds):
    seconds = int(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)

    clock = f"{hours:2d}:{minutes:02d}:{seconds:02d}"
    if days:
        return f"{days} day{'s' if days != 1 else ''}, {clock}"
    return clock


def host_info():
    """Collect host and process facts, one call per page render."""
    process = psutil.Process()
    memory = process.memory_info()
    cpu_times = process.cpu_times()

    return {
        "hostname": socket.gethostname(),
        "ip": default_ip(),
        "pid": os.getpid(),
        "uid": os.getuid() if hasattr(os, "getuid") else "-",
        "gid": os.getgid() if hasattr(os, "getgid") else "-",
        "os_type": platform.system(),
        "os_version": platform.release(),
        "os_uptime": format_duration(time.time() - psutil.boot_time()),
        "arch": platform.machine(),
        "cpu_name": platform.processor() or "<unknown>",
        "phys_cores": psutil.cpu_count(logical=False) or "<unknown>",
        "virt_cores": psutil.cpu_count(logical=True) or "<unknown>",
        "mem_total": format_pow2(psutil.virtual_memory().total),
        "proc_count": len(psutil.pids()),
        "mem_use_virtual": memory.vms,
        "mem_use_physical": memory.rss,
        "cpu_self_time": round(cpu_times.user + cpu_times.system, 2),
    }
