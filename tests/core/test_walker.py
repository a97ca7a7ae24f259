"""Tests for the extension walker."""

import math

import pytest
import numpy as np

from tracemark.config import HighlightOptions
from tracemark.core.walker import (
    CrossSectionStrip,
    ExtensionWalker,
    WalkThresholds,
    walk_direction,
)
from tracemark.models import Axis, Point, RasterBuffer, Segment


def make_strip(widths, branch_runs=None):
    widths = np.asarray(widths, dtype=np.int32)
    if branch_runs is None:
        branch_runs = np.zeros_like(widths)
    return CrossSectionStrip(widths, np.zeros_like(widths), np.asarray(branch_runs, dtype=np.int32))


class TestWalkThresholds:
    """Tests for WalkThresholds.derive."""

    def test_defaults_for_thick_stroke(self):
        """Test derived values for an 8px stroke with default options."""
        t = WalkThresholds.derive(8, HighlightOptions())

        assert t.widen_stop == 14
        assert t.shrink_stop == 4
        assert t.min_stop_steps == 16
        assert t.miss_max == 12
        assert t.branch_min_run == 12

    def test_defaults_for_thin_stroke(self):
        """Test derived values for a 1px stroke."""
        t = WalkThresholds.derive(1, HighlightOptions())

        assert t.widen_stop == 4
        assert t.shrink_stop == 1
        assert t.min_stop_steps == 4
        assert t.branch_min_run == 8

    def test_junctions_disabled(self):
        """Test that widening never stops the walk when junctions are ignored."""
        t = WalkThresholds.derive(8, HighlightOptions(stop_at_junctions=False))
        assert t.widen_stop == math.inf

    def test_extension_bias_extremes(self):
        """Test that extension bias scales gap tolerance and minimum steps."""
        low = WalkThresholds.derive(8, HighlightOptions(extension_bias=0))
        high = WalkThresholds.derive(8, HighlightOptions(extension_bias=100))

        assert low.miss_max == 3
        assert low.min_stop_steps == 8
        assert high.miss_max == 22
        assert high.min_stop_steps == 24

    def test_junction_sensitivity(self):
        """Test that higher sensitivity accepts shorter branches."""
        sensitive = WalkThresholds.derive(1, HighlightOptions(junction_sensitivity=100))
        dull = WalkThresholds.derive(1, HighlightOptions(junction_sensitivity=0))

        assert sensitive.branch_min_run == 5
        assert dull.branch_min_run == 13

    def test_branch_run_exceeds_stroke_width(self):
        """Test that a thick stroke does not count as its own branch."""
        t = WalkThresholds.derive(20, HighlightOptions())
        assert t.branch_min_run > 20


class TestCrossSectionStrip:
    """Tests for CrossSectionStrip."""

    def test_from_flags_width_and_center(self):
        """Test longest run length and center offset per column."""
        flags = np.zeros((33, 5), dtype=bool)
        flags[15:18, 2] = True   # offsets -1..1
        flags[20:25, 3] = True   # offsets 4..8

        strip = CrossSectionStrip.from_flags(flags)

        assert strip.length == 5
        assert strip.cross_width(0) == (0, 0)
        assert strip.cross_width(2) == (3, 0)
        assert strip.cross_width(3) == (5, 6)
        assert strip.branch_runs[3] == 5

    def test_longest_run_wins(self):
        """Test that the longest of several runs is measured."""
        flags = np.zeros((33, 1), dtype=bool)
        flags[0:2, 0] = True
        flags[10:16, 0] = True

        strip = CrossSectionStrip.from_flags(flags)
        assert strip.cross_width(0)[0] == 6

    def test_has_branch(self):
        """Test branch lookup within the near distance."""
        strip = make_strip([3] * 10, [0, 0, 0, 0, 0, 0, 9, 0, 0, 0])

        assert strip.has_branch(4, 2, 8)
        assert not strip.has_branch(3, 2, 8)
        assert not strip.has_branch(4, 2, 10)

    def test_build_on_horizontal_stroke(self, thick_hline_buffer):
        """Test building a strip across a real stroke."""
        from tracemark.models import LocalLuminanceProfile
        profile = LocalLuminanceProfile.around(thick_hline_buffer, 200, 149, 80)

        strip = CrossSectionStrip.build(thick_hline_buffer, profile, Axis.HORIZONTAL, 149)

        assert strip.length == 400
        assert strip.cross_width(200) == (8, 0)
        assert strip.cross_width(20) == (0, 0)


class TestWalkDirection:
    """Tests for the walk loop."""

    @pytest.fixture
    def thresholds(self):
        return WalkThresholds(widen_stop=6, shrink_stop=2, min_stop_steps=4,
                              miss_max=3, branch_min_run=8)

    def test_walks_to_strip_end(self, thresholds):
        """Test walking an unbroken stroke to both ends."""
        strip = make_strip([3] * 50)

        assert walk_direction(strip, 25, 1, thresholds) == 49
        assert walk_direction(strip, 25, -1, thresholds) == 0

    def test_gap_within_tolerance(self, thresholds):
        """Test that a gap of miss_max steps is bridged."""
        widths = [3] * 50
        widths[30:33] = [0, 0, 0]
        assert walk_direction(make_strip(widths), 25, 1, thresholds) == 49

    def test_gap_beyond_tolerance(self, thresholds):
        """Test that the walk ends at the last on-stroke step before a long gap."""
        widths = [3] * 50
        widths[30:34] = [0, 0, 0, 0]
        assert walk_direction(make_strip(widths), 25, 1, thresholds) == 29

    def test_widening_stops_walk(self, thresholds):
        """Test that a pad stops the walk on the pad itself."""
        widths = [3] * 50
        widths[40] = 10
        assert walk_direction(make_strip(widths), 25, 1, thresholds) == 40

    def test_widening_ignored_near_start(self, thresholds):
        """Test that width stops are not honored within min_stop_steps."""
        widths = [3] * 50
        widths[27] = 10
        assert walk_direction(make_strip(widths), 25, 1, thresholds) == 49

    def test_branch_stops_walk(self, thresholds):
        """Test that a crossing branch stops the walk before it."""
        runs = [0] * 50
        runs[40] = 10
        strip = make_strip([3] * 50, runs)

        assert walk_direction(strip, 25, 1, thresholds) == 38
        assert walk_direction(strip, 25, 1, thresholds, check_branch=False) == 49

    def test_start_at_edge(self, thresholds):
        """Test walking off the strip immediately."""
        strip = make_strip([3] * 10)
        assert walk_direction(strip, 0, -1, thresholds) == 0
        assert walk_direction(strip, 9, 1, thresholds) == 9


class TestExtensionWalker:
    """Tests for ExtensionWalker."""

    @pytest.fixture
    def walker(self):
        return ExtensionWalker()

    def test_thick_horizontal_stroke(self, walker, thick_hline_buffer, hline_click, default_options):
        """Test tracing an 8px stroke end to end."""
        result = walker.extend(thick_hline_buffer, hline_click, default_options)

        assert result.segment == Segment(60, 149, 340, 149, Axis.HORIZONTAL)
        assert result.line_width == 8
        assert result.stroke_width == 18

    def test_thin_horizontal_stroke(self, walker, thin_hline_buffer, default_options):
        """Test tracing a 3px stroke; the width estimate matches the stroke."""
        result = walker.extend(thin_hline_buffer, Point(200, 149), default_options)

        assert result.segment == Segment(60, 149, 340, 149, Axis.HORIZONTAL)
        assert result.line_width == 3
        assert result.stroke_width == 7

    def test_vertical_stroke(self, walker, thick_vline_buffer, default_options):
        """Test tracing a vertical stroke re-centers on its centerline."""
        result = walker.extend(thick_vline_buffer, Point(198, 150), default_options)

        assert result.segment == Segment(199, 40, 199, 260, Axis.VERTICAL)

    def test_stops_before_junction(self, walker, junction_buffer, hline_click, default_options):
        """Test that the trace does not cross a perpendicular stroke."""
        result = walker.extend(junction_buffer, hline_click, default_options)

        assert result.segment.x1 == 60
        assert result.segment.x2 == 258
        assert result.segment.x2 < 260

    def test_runs_through_junction_when_disabled(self, walker, junction_buffer, hline_click,
                                                 free_options):
        """Test that the trace continues through a crossing when junctions are ignored."""
        result = walker.extend(junction_buffer, hline_click, free_options)

        assert result.segment.x2 == 340

    def test_widening_stops_on_pad(self, walker, pad_buffer, default_options):
        """Test that a pad at least widen_stop tall ends the trace on the pad."""
        result = walker.extend(pad_buffer, Point(200, 149), default_options, Axis.HORIZONTAL)

        assert result.line_width == 3
        assert result.segment.x2 == 260

    def test_long_gap_ends_trace(self, walker, thick_hline_sheet, hline_click, default_options):
        """Test that a gap longer than the miss tolerance ends the trace."""
        thick_hline_sheet[:, 250:270] = 255
        buffer = RasterBuffer(thick_hline_sheet, "RGB")

        result = walker.extend(buffer, hline_click, default_options)
        assert result.segment.x2 == 249

    def test_extension_bias_bridges_gap(self, walker, thick_hline_sheet, hline_click):
        """Test that a high extension bias carries the trace across a dash gap."""
        thick_hline_sheet[:, 250:270] = 255
        buffer = RasterBuffer(thick_hline_sheet, "RGB")

        result = walker.extend(buffer, hline_click, HighlightOptions(extension_bias=100))
        assert result.segment.x2 == 340

    def test_short_thin_stroke_rejected(self, walker, blank_sheet, default_options):
        """Test that a stroke shorter than six stroke widths is rejected."""
        blank_sheet[148:151, 190:221] = 0
        buffer = RasterBuffer(blank_sheet, "RGB")

        assert walker.extend(buffer, Point(200, 149), default_options) is None

    def test_minimum_length_scales_with_width(self, walker, blank_sheet, default_options):
        """Test that 70px is enough for a thin stroke but not for a thick one."""
        thin = blank_sheet.copy()
        thin[148:151, 170:241] = 0
        thick = blank_sheet.copy()
        thick[145:153, 170:241] = 0

        assert walker.extend(RasterBuffer(thin, "RGB"), Point(200, 149), default_options)
        assert walker.extend(RasterBuffer(thick, "RGB"), Point(200, 148), default_options) is None

    def test_blank_area(self, walker, blank_buffer, default_options):
        """Test that nothing is traced on empty paper."""
        assert walker.extend(blank_buffer, Point(200, 150), default_options) is None

    def test_preferred_axis_restricts_walk(self, walker, thick_hline_buffer, hline_click,
                                           default_options):
        """Test that only the preferred axis is walked."""
        horizontal = walker.extend(thick_hline_buffer, hline_click, default_options, Axis.HORIZONTAL)
        vertical = walker.extend(thick_hline_buffer, hline_click, default_options, Axis.VERTICAL)

        assert horizontal == walker.extend(thick_hline_buffer, hline_click, default_options)
        assert vertical is None

    def test_stroke_touching_border(self, walker, default_options):
        """Test that a stroke running off the raster stops at the border."""
        img = np.full((300, 400, 3), 255, dtype=np.uint8)
        img[145:153, :] = 0

        result = walker.extend(RasterBuffer(img, "RGB"), Point(200, 148), default_options)
        assert (result.segment.x1, result.segment.x2) == (0, 399)

    def test_polarity_inversion(self, walker, thick_hline_sheet, hline_click, default_options):
        """Test that light-on-dark strokes trace the same as dark-on-light."""
        dark = walker.extend(RasterBuffer(thick_hline_sheet, "RGB"), hline_click, default_options)
        light = walker.extend(RasterBuffer(255 - thick_hline_sheet, "RGB"), hline_click,
                              default_options)
        assert dark == light

    def test_default_options(self, walker, thick_hline_buffer, hline_click):
        """Test that omitted options fall back to defaults."""
        assert walker.extend(thick_hline_buffer, hline_click) == \
            walker.extend(thick_hline_buffer, hline_click, HighlightOptions())
