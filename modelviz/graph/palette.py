"""Stable per-model colours for renderers.

The colour is a pure function of the model name, so every graph session (and
every process) agrees on it without sharing a mutable assignment table.
"""

from __future__ import annotations

import zlib

PALETTE = [
    "#4F46E5", "#0891B2", "#059669", "#D97706", "#DC2626",
    "#7C3AED", "#DB2777", "#2563EB", "#65A30D", "#EA580C",
    "#6D28D9", "#0D9488", "#CA8A04", "#E11D48", "#1D4ED8",
]

PLACEHOLDER_COLOR = "#94A3B8"


def palette_index(model: str) -> int:
    return zlib.crc32(model.encode("utf-8")) % len(PALETTE)


def model_color(model: str) -> str:
    return PALETTE[palette_index(model)]


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
