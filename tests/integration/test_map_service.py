"""End to end tests of MapService, the JSON export and the command line."""

from pathlib import Path

import orjson
import pytest
from PIL import Image

from hv_maped.__main__ import main
from hv_maped.errors import MalformedRecord, SchemaMismatch
from hv_maped.geometry import ConvexPolygon, Vec2
from hv_maped.maps.service import MapService
from hv_maped.motion import MotionPath
from hv_maped.properties import (
    EntityKind,
    PropertyDefinition,
    PropertyRegistry,
    PropertyType,
    ResolutionStrategy,
    Value,
)
from hv_maped.settings import AppSettings
from hv_maped.textures import AtlasAnimation, ListAnimation, TextureSettings

PROPERTIES_INI = """\
[brush]
friction = f32:0.5
[thing]
health = u16:100
seed = u128:340282366920938463463374607431768211455
"""

THINGS_INI = """\
[Lamp]
width = 32
height = 32
id = 7
preview = lamp
"""


@pytest.fixture
def workspace(tmp_path: Path, settings: AppSettings) -> AppSettings:
    """Settings pointing at populated resource directories."""
    textures = tmp_path / "textures"
    textures.mkdir()
    Image.new("RGBA", (64, 32)).save(textures / "wall.png")
    Image.new("RGBA", (16, 16)).save(textures / "water1.png")
    Image.new("RGBA", (32, 32)).save(textures / "water2.png")
    Image.new("RGBA", (64, 64)).save(textures / "fire.png")

    things = tmp_path / "things"
    things.mkdir()
    (things / "lamp.ini").write_text(THINGS_INI, encoding="utf-8")

    definitions = tmp_path / "properties.ini"
    definitions.write_text(PROPERTIES_INI, encoding="utf-8")

    export = tmp_path / "export"
    export.mkdir()

    settings.paths.textures_dir = textures
    settings.paths.things_dir = things
    settings.paths.property_definitions_file = definitions
    settings.paths.export_dir = export
    return settings


def populate(service: MapService) -> None:
    document = service.document
    document.add_brush(
        ConvexPolygon.rectangle((0, 0), 4, 4),
        TextureSettings("wall"),
        path=MotionPath.from_positions([(0, 0), (10, 0)]),
    )
    document.add_thing(7, (5, 5))
    document.add_thing(99, (6, 6))


class TestMapServiceSetup:
    """Test registries are built from settings."""

    def test_resources_loaded(self, workspace: AppSettings) -> None:
        """Test textures, things and property definitions are picked up."""
        service = MapService(workspace)
        assert service.textures.size("wall") == (64, 32)
        assert service.catalog.name_of(7) == "Lamp"
        assert service.registry.thing_schema.names() == ["health", "seed"]
        assert service.document.thing_schema == service.registry.thing_schema

    def test_without_settings(self) -> None:
        """Test a bare service starts empty."""
        service = MapService()
        assert len(service.textures) == 0
        assert len(service.catalog) == 0
        assert service.document.brushes == {}


class TestMapServiceDocuments:
    """Test opening and saving documents."""

    def test_save_and_open(self, workspace: AppSettings, tmp_path: Path) -> None:
        """Test a saved document opens identically in a new service."""
        service = MapService(workspace)
        populate(service)
        path = service.save_document(tmp_path / "level")

        assert path.suffix == ".hv"
        assert workspace.paths.recent_files[0] == str(path)

        other = MapService(workspace)
        assert other.open_document(path) == service.document
        assert other.document_path == path

    def test_save_requires_path(self) -> None:
        """Test an unsaved document needs an explicit path."""
        with pytest.raises(ValueError):
            MapService().save_document()

    def test_mismatch_leaves_document_untouched(self, workspace: AppSettings, tmp_path: Path) -> None:
        """Test drift without a decision keeps the current document."""
        service = MapService(workspace)
        populate(service)
        path = service.save_document(tmp_path / "level.hv")

        registry = PropertyRegistry()
        registry.declare(EntityKind.THING, PropertyDefinition.of("health", PropertyType.I32, -1))
        other = MapService(registry=registry)
        current = other.document

        with pytest.raises(SchemaMismatch) as error:
            other.open_document(path)
        assert other.document is current

        loaded = other.resolve_pending(error.value.pending, ResolutionStrategy.ADOPT_APPLICATION)
        assert other.document is loaded
        assert {t.properties["health"] for t in loaded.things.values()} == {Value(PropertyType.I32, -1)}

    def test_configured_decision(self, workspace: AppSettings, tmp_path: Path) -> None:
        """Test the configured schema decision is used when none is given."""
        service = MapService(workspace)
        populate(service)
        path = service.save_document(tmp_path / "level.hv")

        workspace.editor.schema_decision = ResolutionStrategy.ADOPT_MAP
        other = MapService(workspace, registry=PropertyRegistry())
        assert other.open_document(path).thing_schema.names() == ["health", "seed"]

    def test_corrupt_file(self, tmp_path: Path) -> None:
        """Test a corrupt file raises and keeps the current document."""
        path = tmp_path / "broken.hv"
        path.write_bytes(b"HVMP\x01\x00")
        service = MapService()
        current = service.document
        with pytest.raises(MalformedRecord):
            service.open_document(path)
        assert service.document is current


class TestMapServiceExport:
    """Test the JSON export."""

    def test_export(self, workspace: AppSettings, tmp_path: Path) -> None:
        """Test the exported entities."""
        service = MapService(workspace)
        populate(service)
        service.save_document(tmp_path / "level.hv")

        path = service.export()

        assert path == workspace.paths.export_dir / "level.json"
        data = orjson.loads(path.read_bytes())
        assert data["version"] == 1
        assert [t["name"] for t in data["things"]] == ["Lamp", "unknown"]
        assert data["things"][0]["properties"]["seed"]["value"] == str((1 << 128) - 1)
        brush = data["brushes"][0]
        assert brush["texture"]["name"] == "wall"
        assert brush["path"]["waypoints"][1]["position"] == [10.0, 0.0]
        assert brush["properties"]["friction"] == {"type": "f32", "value": 0.5}

    def test_export_needs_destination(self) -> None:
        """Test export without a path or export directory."""
        with pytest.raises(ValueError):
            MapService().export()


class TestMapServiceResources:
    """Test animations, props and texture lookups."""

    def test_animations_file(self, workspace: AppSettings, tmp_path: Path) -> None:
        """Test defaults move between documents through an animations file."""
        service = MapService(workspace)
        service.document.set_default_animation("wall", AtlasAnimation("fire", 2, 2, 0.5))
        path = service.export_animations(tmp_path / "set.anms")

        other = MapService(workspace)
        other.document.set_default_animation("water1", ListAnimation.of([("water1", 1.0)]))
        assert other.import_animations(path) == 1
        assert set(other.document.animations) == {"wall", "water1"}
        assert other.import_animations(path, replace=True) == 1
        assert set(other.document.animations) == {"wall"}

    def test_props_file(self, workspace: AppSettings, tmp_path: Path) -> None:
        """Test props exported from one document stamp into another."""
        service = MapService(workspace)
        populate(service)
        thing_ids = list(service.document.things)
        service.document.props.append(service.document.capture_prop([], thing_ids[:1], (5, 5)))
        path = service.export_props(tmp_path / "lamps.prps")

        other = MapService(workspace)
        props = other.import_props(path)
        assert len(other.document.props) == 1
        _, things = other.document.stamp_prop(props[0], (0, 0))
        assert things[0].position == Vec2(0, 0)

    def test_texture_mapping(self, workspace: AppSettings) -> None:
        """Test mappings use the size of the texture currently shown."""
        service = MapService(workspace)
        document = service.document
        plain = document.add_brush(ConvexPolygon.rectangle((0, 0), 4, 4), TextureSettings("wall"))
        animated = document.add_brush(ConvexPolygon.rectangle((0, 0), 4, 4), TextureSettings("water1", sprite=True))
        missing = document.add_brush(ConvexPolygon.rectangle((0, 0), 4, 4), TextureSettings("nowhere"))
        bare = document.add_brush(ConvexPolygon.rectangle((0, 0), 4, 4))
        document.set_default_animation("water1", ListAnimation.of([("water1", 1.0), ("water2", 1.0)]))

        assert service.texture_mapping(plain.id) is not None
        assert service.drawn_texture(animated, 1.5) == "water2"
        assert service.texture_mapping(animated.id, 1.5).hull.width == 32
        assert service.texture_mapping(animated.id, 0.5).hull.width == 16
        assert service.texture_mapping(missing.id) is None
        assert service.texture_mapping(bare.id) is None

    def test_editor_defaults(self, workspace: AppSettings) -> None:
        """Test new animations and textures follow the editor settings."""
        workspace.editor.default_frame_time = 0.25
        workspace.editor.default_atlas_grid = (2, 3)
        workspace.editor.default_texture_scale = 2.0
        service = MapService(workspace)

        assert service.new_list_animation(["water1", "water2"]) == ListAnimation.of(
            [("water1", 0.25), ("water2", 0.25)]
        )
        assert service.new_atlas_animation("fire") == AtlasAnimation("fire", 2, 3, 0.25)

        brush = service.document.add_brush(ConvexPolygon.rectangle((0, 0), 4, 4))
        service.assign_texture(brush.id, "wall")
        assert brush.texture == TextureSettings("wall", scale_x=2.0, scale_y=2.0)

    def test_editor_defaults_without_settings(self) -> None:
        """Test the built-in defaults apply when no settings are given."""
        service = MapService()
        assert service.new_atlas_animation("fire") == AtlasAnimation("fire", 1, 1, 0.1)
        assert service.new_texture_settings("wall") == TextureSettings("wall")

    def test_reload_things(self, workspace: AppSettings) -> None:
        """Test reloading picks up new definitions."""
        service = MapService(workspace)
        (workspace.paths.things_dir / "torch.ini").write_text(
            "[Torch]\nwidth = 8\nheight = 8\nid = 8\npreview = torch\n", encoding="utf-8"
        )
        assert service.reload_things() == 2
        assert service.catalog.name_of(8) == "Torch"


class TestCommandLine:
    """Test the command line entry point."""

    def _save(self, settings: AppSettings, path: Path) -> Path:
        service = MapService(settings)
        populate(service)
        return service.save_document(path)

    def test_info(self, workspace: AppSettings, settings_file: Path, tmp_path: Path, capsys) -> None:
        """Test the summary output."""
        path = self._save(workspace, tmp_path / "level.hv")
        assert main(["--settings", str(settings_file), "info", str(path)]) == 0
        out = capsys.readouterr().out
        assert "brushes:    1" in out
        assert "things:     2" in out
        assert "unknown thing ID 99" in out

    def test_export(self, workspace: AppSettings, settings_file: Path, tmp_path: Path) -> None:
        """Test exporting from the command line."""
        path = self._save(workspace, tmp_path / "level.hv")
        output = tmp_path / "out.json"
        assert main(["--settings", str(settings_file), "export", str(path), str(output)]) == 0
        assert len(orjson.loads(output.read_bytes())["things"]) == 2

    def test_export_with_drift(self, workspace: AppSettings, settings_file: Path, tmp_path: Path) -> None:
        """Test drift needs a flag on the command line."""
        path = self._save(workspace, tmp_path / "level.hv")
        (tmp_path / "properties.ini").write_text("[thing]\nhealth = i8\n", encoding="utf-8")
        output = tmp_path / "out.json"

        args = ["--settings", str(settings_file), "export", str(path), str(output)]
        assert main(args) == 2
        assert main(args + ["--adopt-app"]) == 0

    def test_missing_file(self, settings_file: Path, tmp_path: Path) -> None:
        """Test a missing input file fails cleanly."""
        assert main(["--settings", str(settings_file), "info", str(tmp_path / "none.hv")]) == 1

    def test_first_run_is_recorded(self, settings_file: Path, tmp_path: Path) -> None:
        """Test the first invocation clears the first run flag."""
        assert AppSettings(settings_file=settings_file).is_first_run
        main(["--settings", str(settings_file), "info", str(tmp_path / "none.hv")])
        assert not AppSettings(settings_file=settings_file).is_first_run
