"""Tests for texture animations."""

import pytest

from hv_maped.textures import AtlasAnimation, Frame, ListAnimation


class TestListAnimation:
    """Test list animations."""

    def test_frame_at(self) -> None:
        """Test frame lookup over cumulative durations."""
        anim = ListAnimation.of([("A", 1.0), ("B", 2.0)])
        assert anim.cycle_duration == 3.0
        assert anim.texture_at(0.0) == "A"
        assert anim.texture_at(1.0) == "B"
        assert anim.texture_at(2.5) == "B"
        assert anim.texture_at(3.5) == "A"

    def test_empty(self) -> None:
        """Test an animation needs frames."""
        with pytest.raises(ValueError):
            ListAnimation(())

    def test_invalid_duration(self) -> None:
        """Test frame durations must be positive."""
        with pytest.raises(ValueError):
            Frame("A", 0)


class TestAtlasAnimation:
    """Test atlas animations."""

    def test_frame_at(self) -> None:
        """Test row-major wrap around."""
        anim = AtlasAnimation("fire", rows=2, cols=2, frame_time=0.5)
        assert anim.frame_count == 4
        assert anim.frame_at(2.1) == 0
        assert anim.frame_at(0.6) == 1
        assert anim.frame_at(1.9) == 3

    def test_cell_rect(self) -> None:
        """Test cell rectangles from the top left."""
        anim = AtlasAnimation("fire", rows=2, cols=4, frame_time=0.1)
        assert anim.cell_rect(0, (64, 32)) == (0, 0, 16, 16)
        assert anim.cell_rect(5, (64, 32)) == (16, 16, 16, 16)
        with pytest.raises(IndexError):
            anim.cell_rect(8, (64, 32))

    @pytest.mark.parametrize("rows,cols,frame_time", [(0, 1, 1.0), (1, 1, 0.0)])
    def test_invalid(self, rows: int, cols: int, frame_time: float) -> None:
        """Test grid and timing validation."""
        with pytest.raises(ValueError):
            AtlasAnimation("fire", rows, cols, frame_time)

    def test_per_frame_timing(self) -> None:
        """Test cells with their own durations."""
        anim = AtlasAnimation("fire", rows=1, cols=3, frame_time=0.1, frame_times=(1.0, 0.5, 0.5))
        assert anim.cycle_duration == 2.0
        assert anim.frame_at(0.9) == 0
        assert anim.frame_at(1.2) == 1
        assert anim.frame_at(1.7) == 2
        assert anim.frame_at(2.1) == 0

    @pytest.mark.parametrize("frame_times", [(1.0,), (1.0, 0.0)])
    def test_invalid_per_frame_timing(self, frame_times) -> None:
        """Test one positive duration per cell is required."""
        with pytest.raises(ValueError):
            AtlasAnimation("fire", 1, 2, 0.1, frame_times=frame_times)
