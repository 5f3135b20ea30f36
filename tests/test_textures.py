"""Tests for texture settings, mapping and the texture registry."""

from pathlib import Path

import pytest
from PIL import Image

from hv_maped.geometry import ConvexPolygon, Hull, Vec2
from hv_maped.textures import (
    AtlasAnimation,
    TextureRegistry,
    TextureSettings,
    texture_mapping,
)


def square() -> ConvexPolygon:
    return ConvexPolygon([(0, 0), (4, 0), (4, 4), (0, 4)])


class TestTextureSettings:
    """Test texture settings validation."""

    def test_sprite_clears_parallax_and_scroll(self) -> None:
        """Test sprite mode reads parallax and scroll as zero."""
        settings = TextureSettings("wall", parallax_x=2, scroll_y=3, sprite=True)
        assert settings.parallax_x == 0.0
        assert settings.scroll_y == 0.0

    def test_angle_normalized(self) -> None:
        """Test angles wrap into [0, 360)."""
        assert TextureSettings("wall", angle=-90).angle == 270.0
        assert TextureSettings("wall", angle=-1e-14).angle == 0.0

    @pytest.mark.parametrize("kwargs", [{"scale_x": 0}, {"height": 128}, {"texture": ""}])
    def test_invalid(self, kwargs) -> None:
        """Test invalid settings raise ValueError."""
        values = {"texture": "wall", **kwargs}
        with pytest.raises(ValueError):
            TextureSettings(**values)


class TestTextureMapping:
    """Test the texture mapping function."""

    def test_fill_uvs(self) -> None:
        """Test per-vertex UVs in fill mode."""
        mapping = texture_mapping(square(), TextureSettings("wall"), (4, 4))
        assert not mapping.sprite
        assert mapping.vertices == square().vertices
        assert Vec2(1, 1) in mapping.uvs

    def test_follows_vertex_edits(self) -> None:
        """Test the mapping is recomputed from the current polygon."""
        polygon = square()
        polygon.move_vertex(2, (8, 8))
        mapping = texture_mapping(polygon, TextureSettings("wall"), (4, 4))
        assert Vec2(2, 2) in mapping.uvs

    def test_scroll(self) -> None:
        """Test scrolling shifts UVs over time."""
        settings = TextureSettings("water", scroll_x=2)
        mapping = texture_mapping(square(), settings, (4, 4), elapsed=1.0)
        assert mapping.uvs[0] == Vec2(0.5, 0)

    def test_sprite_quad(self) -> None:
        """Test the sprite quad is centered on the hull center plus offset."""
        settings = TextureSettings("lamp", sprite=True, offset_x=1)
        mapping = texture_mapping(square(), settings, (4, 2))
        assert mapping.sprite
        assert mapping.hull == Hull(top=3, bottom=1, left=1, right=5)

    def test_sprite_ignores_polygon_shape(self) -> None:
        """Test a vertex edit that keeps the hull keeps the sprite."""
        settings = TextureSettings("lamp", sprite=True)
        before = texture_mapping(square(), settings, (2, 2))
        polygon = ConvexPolygon([(0, 0), (4, 0), (4, 4), (0, 4), (2, 4)])
        assert texture_mapping(polygon, settings, (2, 2)) == before

    def test_atlas_sprite_uses_cell_size(self) -> None:
        """Test atlas animated sprites are one cell large."""
        settings = TextureSettings("fire", sprite=True)
        atlas = AtlasAnimation("fire", rows=2, cols=2, frame_time=0.5)
        mapping = texture_mapping(square(), settings, (8, 8), atlas)
        assert mapping.hull.width == 4
        assert mapping.hull.height == 4


class TestTextureRegistry:
    """Test the directory backed texture registry."""

    def _make(self, path: Path, size: tuple) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size).save(path)

    def test_reload(self, tmp_path: Path) -> None:
        """Test scanning, first name wins and broken files are skipped."""
        self._make(tmp_path / "wall.png", (8, 4))
        self._make(tmp_path / "zz" / "wall.png", (16, 16))
        self._make(tmp_path / "sub" / "floor.png", (32, 32))
        (tmp_path / "broken.png").write_bytes(b"not an image")
        (tmp_path / "notes.txt").write_text("ignored")

        registry = TextureRegistry(tmp_path)

        assert registry.names() == ["floor", "wall"]
        assert registry.size("wall") == (8, 4)
        assert registry.get("broken") is None

    def test_unknown_name(self) -> None:
        """Test unknown names resolve to None."""
        registry = TextureRegistry()
        assert registry.size("missing") is None
        assert "missing" not in registry
        assert len(registry) == 0

    def test_reload_swaps(self, tmp_path: Path) -> None:
        """Test a reload replaces the namespace."""
        self._make(tmp_path / "wall.png", (8, 4))
        registry = TextureRegistry(tmp_path)
        (tmp_path / "wall.png").unlink()
        self._make(tmp_path / "floor.png", (2, 2))

        assert registry.reload() == 1
        assert "wall" not in registry
        assert "floor" in registry

    def test_invalid_directory(self, tmp_path: Path) -> None:
        """Test reloading without a valid directory."""
        with pytest.raises(RuntimeError):
            TextureRegistry().reload(tmp_path / "missing")
