# tests/server/test_cluster.py
"""
Tests for capacity parsing and cluster aggregation
"""

import itertools
from types import SimpleNamespace

import pytest

from core.cluster import (
    compute_stats,
    format_aggregate,
    format_capacity,
    parse_capacity,
    parse_capacity_strict,
    percentage,
)


def node(status="online", cpu=(8, 2), mem=(32768, 8192), disk=(512000, 122880)):
    return SimpleNamespace(
        status=status,
        cpu_total=cpu[0], cpu_used=cpu[1],
        mem_total_mb=mem[0], mem_used_mb=mem[1],
        disk_total_mb=disk[0], disk_used_mb=disk[1],
    )


class TestParseCapacity:

    @pytest.mark.parametrize("value,expected", [
        ("512MB", 512),
        ("32GB", 32768),
        ("1TB", 1048576),
        ("16gb", 16384),
        ("8 GB", 8192),
    ])
    def test_units(self, value, expected):
        assert parse_capacity(value) == expected
        assert parse_capacity_strict(value) == expected

    @pytest.mark.parametrize("value", [None, "", "lots", "GB", "12"])
    def test_lenient_parse_defaults_to_zero(self, value):
        assert parse_capacity(value) == 0

    @pytest.mark.parametrize("value", ["lots", "12", "1.5GB", "32GB extra", "-4GB"])
    def test_strict_parse_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_capacity_strict(value)


class TestFormatting:

    def test_format_capacity_picks_largest_even_unit(self):
        assert format_capacity(None) is None
        assert format_capacity(0) == "0GB"
        assert format_capacity(512) == "512MB"
        assert format_capacity(16384) == "16GB"
        assert format_capacity(1048576) == "1TB"
        assert format_capacity(1536) == "1536MB"

    def test_format_aggregate_switches_to_tb(self):
        assert format_aggregate(0) == "0.0GB"
        assert format_aggregate(49152) == "48.0GB"
        assert format_aggregate(1536) == "1.5GB"
        assert format_aggregate(1024 * 1024) == "1.0TB"
        assert format_aggregate(1024 * 1024 + 512 * 1024) == "1.5TB"

    def test_percentage_rounds_and_handles_zero(self):
        assert percentage(0, 0) == 0
        assert percentage(5, 0) == 0
        assert percentage(1, 3) == 33
        assert percentage(1, 8) == 13
        assert percentage(2, 8) == 25


class TestComputeStats:

    def test_empty_cluster(self):
        stats = compute_stats([])

        assert stats["cpu"] == {"total": 0, "used": 0, "percentage": 0}
        assert stats["memory"] == {"total": "0.0GB", "used": "0.0GB", "percentage": 0}
        assert stats["disk"]["percentage"] == 0
        assert stats["nodes"] == {"total": 0, "online": 0}

    def test_sums_and_online_count(self):
        nodes = [
            node(),
            node(status="offline", cpu=(4, 0), mem=(16384, 0), disk=(0, 0)),
        ]

        stats = compute_stats(nodes)

        assert stats["cpu"]["total"] == 12
        assert stats["cpu"]["percentage"] == 17
        assert stats["memory"]["total"] == "48.0GB"
        assert stats["memory"]["used"] == "8.0GB"
        assert stats["nodes"] == {"total": 2, "online": 1}

    def test_missing_values_count_as_zero(self):
        blank = SimpleNamespace(
            status="maintenance", cpu_total=None, cpu_used=None,
            mem_total_mb=None, mem_used_mb=None, disk_total_mb=None, disk_used_mb=None,
        )
        stats = compute_stats([blank, node()])
        assert stats["cpu"]["total"] == 8
        assert stats["nodes"] == {"total": 2, "online": 1}

    def test_order_does_not_matter(self):
        nodes = [
            node(),
            node(cpu=(16, 4), mem=(65536, 12288), disk=(1048576, 204800)),
            node(status="offline", cpu=(4, 1), mem=(8192, 2048), disk=(256000, 51200)),
        ]
        expected = compute_stats(nodes)

        for permutation in itertools.permutations(nodes):
            assert compute_stats(list(permutation)) == expected
