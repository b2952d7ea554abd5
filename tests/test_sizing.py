"""Tests for sizing.py — layout and visual boxes."""

from __future__ import annotations

from flowspine.graph import NodeKind
from flowspine.sizing import Box, layout_box, visual_box

REGULAR_KINDS = [NodeKind.ACTION, NodeKind.QUERY, NodeKind.MUTATION, NodeKind.LOOP, NodeKind.SUBFLOW, NodeKind.ERROR]


class TestLayoutBox:
    def test_regular_kinds_share_default_box(self):
        for kind in REGULAR_KINDS:
            assert layout_box(kind) == Box(300, 80), kind

    def test_decision_is_taller(self):
        assert layout_box(NodeKind.DECISION) == Box(300, 160)

    def test_start_end_keep_layout_width(self):
        """Start/End use the full layout width so their centers align."""
        assert layout_box(NodeKind.START) == Box(300, 80)
        assert layout_box(NodeKind.END) == Box(300, 80)

    def test_every_kind_has_the_same_width(self):
        assert {layout_box(kind).width for kind in NodeKind} == {300}

    def test_unknown_kind_falls_back(self):
        assert layout_box("widget") == Box(300, 80)

    def test_accepts_plain_strings(self):
        assert layout_box("decision") == layout_box(NodeKind.DECISION)


class TestVisualBox:
    def test_default(self):
        for kind in REGULAR_KINDS:
            assert visual_box(kind) == Box(240, 80), kind

    def test_decision(self):
        assert visual_box(NodeKind.DECISION) == Box(280, 200)

    def test_start_end(self):
        assert visual_box(NodeKind.START) == Box(140, 50)
        assert visual_box(NodeKind.END) == Box(140, 50)

    def test_unknown_kind_falls_back(self):
        assert visual_box("widget") == Box(240, 80)


class TestBox:
    def test_transposed(self):
        assert Box(300, 80).transposed() == Box(80, 300)
