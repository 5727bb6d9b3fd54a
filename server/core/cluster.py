# server/core/cluster.py
"""
Cluster capacity helpers

Node capacities are stored as integer megabytes. This module converts the
"32GB" style strings the API speaks into megabytes and back, and aggregates
fleet-wide utilization from the node rows.
"""

import math
import re
from typing import Any, Dict, Iterable, Optional

MB_PER_UNIT = {
    "MB": 1,
    "GB": 1024,
    "TB": 1024 * 1024,
}

CAPACITY_PATTERN = re.compile(r"(\d+)\s*(MB|GB|TB)", re.IGNORECASE)


def parse_capacity(value: Optional[str]) -> int:
    """
    Parse "<integer><MB|GB|TB>" into megabytes.

    Lenient: missing or malformed values count as 0. Used when backfilling
    legacy text columns, where a bad value must not stop the migration.
    """
    if not value:
        return 0
    match = CAPACITY_PATTERN.search(str(value))
    if not match:
        return 0
    return int(match.group(1)) * MB_PER_UNIT[match.group(2).upper()]


def parse_capacity_strict(value: str) -> int:
    """Parse a capacity string from user input, raising ValueError when malformed"""
    match = CAPACITY_PATTERN.fullmatch(value.strip())
    if not match:
        raise ValueError(f"invalid capacity '{value}', expected e.g. '512MB', '32GB' or '1TB'")
    return int(match.group(1)) * MB_PER_UNIT[match.group(2).upper()]


def format_capacity(megabytes: Optional[int]) -> Optional[str]:
    """Render stored megabytes with the largest unit that divides them evenly"""
    if megabytes is None:
        return None
    if megabytes == 0:
        return "0GB"
    for unit in ("TB", "GB"):
        size = MB_PER_UNIT[unit]
        if megabytes % size == 0:
            return f"{megabytes // size}{unit}"
    return f"{megabytes}MB"


def format_aggregate(megabytes: float) -> str:
    """Render an aggregate as GB, or TB from 1024 GB upwards, one decimal place"""
    gigabytes = megabytes / MB_PER_UNIT["GB"]
    if gigabytes >= 1024:
        return f"{gigabytes / 1024:.1f}TB"
    return f"{gigabytes:.1f}GB"


def percentage(used: float, total: float) -> int:
    if total <= 0:
        return 0
    return int(math.floor(used / total * 100 + 0.5))


def compute_stats(nodes: Iterable[Any]) -> Dict[str, Any]:
    """
    Aggregate CPU, memory and disk across nodes.

    Works on anything exposing the Node columns. Sums are order independent,
    so any permutation of `nodes` gives the same result.
    """
    cpu_total = cpu_used = 0
    mem_total = mem_used = 0
    disk_total = disk_used = 0
    node_count = online = 0

    for node in nodes:
        node_count += 1
        if node.status == "online":
            online += 1
        cpu_total += node.cpu_total or 0
        cpu_used += node.cpu_used or 0
        mem_total += node.mem_total_mb or 0
        mem_used += node.mem_used_mb or 0
        disk_total += node.disk_total_mb or 0
        disk_used += node.disk_used_mb or 0

    return {
        "cpu": {
            "total": cpu_total,
            "used": cpu_used,
            "percentage": percentage(cpu_used, cpu_total),
        },
        "memory": {
            "total": format_aggregate(mem_total),
            "used": format_aggregate(mem_used),
            "percentage": percentage(mem_used, mem_total),
        },
        "disk": {
            "total": format_aggregate(disk_total),
            "used": format_aggregate(disk_used),
            "percentage": percentage(disk_used, disk_total),
        },
        "nodes": {
            "total": node_count,
            "online": online,
        },
    }
