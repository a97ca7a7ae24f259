"""Pytest fixtures for tracemark tests."""

import pytest
import numpy as np

from tracemark.config import HighlightOptions
from tracemark.models import RasterBuffer, Point


def make_sheet(width=400, height=300, background=255):
    """White (or ``background``) RGB sheet."""
    return np.full((height, width, 3), background, dtype=np.uint8)


def draw_hline(img, top, thickness, x0, x1, value=0):
    """Draw a horizontal stroke covering rows top..top+thickness-1, columns x0..x1."""
    img[top:top + thickness, x0:x1 + 1] = value
    return img


def draw_vline(img, left, thickness, y0, y1, value=0):
    """Draw a vertical stroke covering columns left..left+thickness-1, rows y0..y1."""
    img[y0:y1 + 1, left:left + thickness] = value
    return img


# ============================================================================
# Sheet Fixtures (400 x 300, white background)
# ============================================================================

@pytest.fixture
def blank_sheet():
    """An empty white sheet."""
    return make_sheet()


@pytest.fixture
def thick_hline_sheet():
    """8px horizontal stroke on rows 145..152, columns 60..340."""
    return draw_hline(make_sheet(), 145, 8, 60, 340)


@pytest.fixture
def thin_hline_sheet():
    """3px horizontal stroke on rows 148..150, columns 60..340."""
    return draw_hline(make_sheet(), 148, 3, 60, 340)


@pytest.fixture
def thick_vline_sheet():
    """8px vertical stroke on columns 195..202, rows 40..260."""
    return draw_vline(make_sheet(), 195, 8, 40, 260)


@pytest.fixture
def junction_sheet(thick_hline_sheet):
    """Thick horizontal stroke crossed by an 8px vertical stroke at columns 260..267."""
    return draw_vline(thick_hline_sheet, 260, 8, 60, 240)


@pytest.fixture
def wide_junction_sheet(thick_hline_sheet):
    """Thick horizontal stroke crossed by a 16px vertical stroke at columns 260..275."""
    return draw_vline(thick_hline_sheet, 260, 16, 60, 240)


@pytest.fixture
def pad_sheet(thin_hline_sheet):
    """Thin horizontal stroke with a 7px tall pad at columns 260..267."""
    return draw_vline(thin_hline_sheet, 260, 8, 146, 152)


# ============================================================================
# Buffer Fixtures
# ============================================================================

@pytest.fixture
def blank_buffer(blank_sheet):
    return RasterBuffer(blank_sheet, "RGB")


@pytest.fixture
def thick_hline_buffer(thick_hline_sheet):
    return RasterBuffer(thick_hline_sheet, "RGB")


@pytest.fixture
def thin_hline_buffer(thin_hline_sheet):
    return RasterBuffer(thin_hline_sheet, "RGB")


@pytest.fixture
def thick_vline_buffer(thick_vline_sheet):
    return RasterBuffer(thick_vline_sheet, "RGB")


@pytest.fixture
def junction_buffer(junction_sheet):
    return RasterBuffer(junction_sheet, "RGB")


@pytest.fixture
def wide_junction_buffer(wide_junction_sheet):
    return RasterBuffer(wide_junction_sheet, "RGB")


@pytest.fixture
def pad_buffer(pad_sheet):
    return RasterBuffer(pad_sheet, "RGB")


# ============================================================================
# Option Fixtures
# ============================================================================

@pytest.fixture
def default_options():
    return HighlightOptions()


@pytest.fixture
def free_options():
    """Options that trace straight through junctions."""
    return HighlightOptions(stop_at_junctions=False)


@pytest.fixture
def hline_click():
    """A click on the center of the horizontal strokes."""
    return Point(200, 148)
