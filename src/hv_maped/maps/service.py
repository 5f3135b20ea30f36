"""
High-level service owning the open document and the resources it refers to.

`MapService` is what a host (editor front end, command line) talks to: it
keeps the property registry, the things catalog and the texture registry,
opens and saves documents through the codec, and resolves textures for
brushes.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from ..codec import (
    DOCUMENT_SUFFIX,
    PendingLoad,
    PendingProps,
    read_animations,
    read_document,
    read_props,
    write_animations,
    write_document,
    write_props,
)
from ..errors import DuplicateProperty
from ..properties import PropertyRegistry, ResolutionStrategy
from ..settings.editor import DEFAULT_ATLAS_GRID, DEFAULT_FRAME_TIME, DEFAULT_TEXTURE_SCALE
from ..textures import AtlasAnimation, ListAnimation, TextureMapping, TextureRegistry, TextureSettings
from ..things import ThingsCatalog
from .exporter import write_export
from .models import Brush, Document
from .props import Prop

if TYPE_CHECKING:
    from ..settings import AppSettings


class MapService:
    """Facade over one open document and its registries.

    The current document is only replaced once a load fully succeeds; a file
    error or an unresolved schema mismatch leaves it untouched.
    """

    def __init__(
        self,
        settings: Optional["AppSettings"] = None,
        registry: Optional[PropertyRegistry] = None,
        catalog: Optional[ThingsCatalog] = None,
        textures: Optional[TextureRegistry] = None,
    ):
        """Initialize the service.

        Registries that are not given are created from the configured paths
        when settings are available, empty otherwise.

        Args:
            settings: Application settings (paths, schema decision, recent files)
            registry: Property registry providing the current schemas
            catalog: Things catalog
            textures: Texture registry
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.settings = settings

        self.registry = registry if registry is not None else self._create_registry()
        self.catalog = catalog if catalog is not None else self._create_catalog()
        self.textures = textures if textures is not None else self._create_textures()

        self.document = Document.new(self.registry)
        self.document_path: Optional[Path] = None

    # === Setup ===

    def _create_registry(self) -> PropertyRegistry:
        registry = PropertyRegistry()
        definitions = self.settings.paths.property_definitions_file if self.settings else None
        if definitions is not None:
            try:
                registry.load_definitions_file(definitions)
            except (OSError, ValueError, DuplicateProperty) as e:
                self.logger.error(f"Could not load property definitions from {definitions}: {e}")
        return registry

    def _create_catalog(self) -> ThingsCatalog:
        things_dir = self.settings.paths.things_dir if self.settings else None
        if things_dir is not None and things_dir.is_dir():
            return ThingsCatalog(things_dir)
        if things_dir is not None:
            self.logger.warning(f"Things directory not found: {things_dir}")
        return ThingsCatalog()

    def _create_textures(self) -> TextureRegistry:
        textures_dir = self.settings.paths.textures_dir if self.settings else None
        if textures_dir is not None and textures_dir.is_dir():
            return TextureRegistry(textures_dir)
        if textures_dir is not None:
            self.logger.warning(f"Textures directory not found: {textures_dir}")
        return TextureRegistry()

    # === Documents ===

    def new_document(self) -> Document:
        """Replace the current document with an empty one."""
        self.document = Document.new(self.registry)
        self.document_path = None
        self.logger.info("Created new document")
        return self.document

    def open_document(self, path: Path, strategy: Optional[ResolutionStrategy] = None) -> Document:
        """Load a document file and make it current.

        Args:
            path: Document file
            strategy: Drift resolution; defaults to the configured decision

        Raises:
            SchemaMismatch: On drift without a strategy; pass `error.pending`
                to `resolve_pending` once the user has chosen
            MalformedRecord: If the file is corrupt
            UnsupportedVersion: If the file is of an unknown kind or version
        """
        path = Path(path)
        if strategy is None and self.settings is not None:
            strategy = self.settings.editor.schema_decision

        pending = read_document(path, self.registry)
        return self.resolve_pending(pending, strategy)

    def resolve_pending(self, pending: PendingLoad, strategy: Optional[ResolutionStrategy]) -> Document:
        """Finish a two-phase load and make the result current."""
        document = pending.resolve(strategy)
        self.document = document
        self.document_path = pending.source
        if pending.source is not None:
            self._remember(pending.source)
        self.logger.info(
            f"Opened document {pending.source}: {len(document.brushes)} brushes, "
            f"{len(document.things)} things"
        )
        return document

    def save_document(self, path: Optional[Path] = None) -> Path:
        """Save the current document, to its own file unless `path` is given.

        Raises:
            ValueError: If the document was never saved and no path is given
        """
        if path is None:
            if self.document_path is None:
                raise ValueError("Document has no file yet, a path is required")
            path = self.document_path
        path = Path(path)
        if not path.suffix:
            path = path.with_suffix(DOCUMENT_SUFFIX)

        written = write_document(self.document, path)
        self.document_path = written
        self._remember(written)
        return written

    def export(self, path: Optional[Path] = None) -> Path:
        """Export entities as JSON, by default into the configured export dir.

        Raises:
            ValueError: If no path is given and none can be derived
        """
        if path is None:
            export_dir = self.settings.paths.export_dir if self.settings else None
            if export_dir is None or self.document_path is None:
                raise ValueError("No export path given and no export directory configured")
            path = export_dir / f"{self.document_path.stem}.json"
        return write_export(self.document, Path(path), self.catalog)

    def _remember(self, path: Path) -> None:
        if self.settings is not None:
            self.settings.paths.add_recent_file(path)

    # === Animations ===

    def export_animations(self, path: Path) -> Path:
        return write_animations(self.document.animations, Path(path))

    def import_animations(self, path: Path, replace: bool = False) -> int:
        """Load texture default animations into the current document.

        Args:
            path: Animations file
            replace: Drop the current defaults first instead of merging

        Returns:
            Number of imported animations
        """
        animations = read_animations(Path(path))
        if replace:
            self.document.animations.clear()
        for texture, animation in animations.items():
            self.document.set_default_animation(texture, animation)
        self.logger.info(f"Imported {len(animations)} animations from {path}")
        return len(animations)

    # === Props ===

    def export_props(self, path: Path, props: Optional[List[Prop]] = None) -> Path:
        """Write props, the document's own by default."""
        return write_props(list(self.document.props if props is None else props), Path(path))

    def read_props(self, path: Path) -> PendingProps:
        """Parse a props file, comparing members with the document schemas."""
        path = Path(path)
        stored = read_props(path)
        return PendingProps(
            stored.props,
            self.document.brush_schema,
            self.document.thing_schema,
            source=path,
        )

    def import_props(self, path: Path, strategy: Optional[ResolutionStrategy] = None) -> List[Prop]:
        """Append the props of a file to the current document.

        Raises:
            SchemaMismatch: On drift without a strategy
        """
        if strategy is None and self.settings is not None:
            strategy = self.settings.editor.schema_decision
        props = self.read_props(path).resolve(strategy)
        self.document.props.extend(props)
        self.logger.info(f"Imported {len(props)} props from {path}")
        return props

    # === Registries ===

    def reload_things(self) -> int:
        """Rescan the things directory; see `ThingsCatalog.reload`."""
        return self.catalog.reload()

    def reload_textures(self) -> int:
        """Rescan the textures directory; see `TextureRegistry.reload`."""
        return self.textures.reload()

    # === Editor defaults ===

    def _editor_defaults(self) -> Tuple[float, Tuple[int, int], float]:
        if self.settings is None:
            return DEFAULT_FRAME_TIME, DEFAULT_ATLAS_GRID, DEFAULT_TEXTURE_SCALE
        editor = self.settings.editor
        return editor.default_frame_time, editor.default_atlas_grid, editor.default_texture_scale

    def new_list_animation(self, textures: Sequence[str]) -> ListAnimation:
        """List animation showing each texture for the default frame time."""
        frame_time, _, _ = self._editor_defaults()
        return ListAnimation.of((texture, frame_time) for texture in textures)

    def new_atlas_animation(self, texture: str) -> AtlasAnimation:
        """Atlas animation of a texture with the default grid and frame time."""
        frame_time, (rows, cols), _ = self._editor_defaults()
        return AtlasAnimation(texture, rows, cols, frame_time)

    def new_texture_settings(self, texture: str) -> TextureSettings:
        """Texture settings using the default scale."""
        _, _, scale = self._editor_defaults()
        return TextureSettings(texture, scale_x=scale, scale_y=scale)

    def assign_texture(self, brush_id: int, texture: str) -> Brush:
        """Give a brush a fresh texture with the editor defaults.

        Raises:
            KeyError: If the brush does not exist
        """
        brush = self.document.brushes[brush_id]
        brush.texture = self.new_texture_settings(texture)
        if self.textures.get(texture) is None:
            self.logger.debug(f"Brush {brush_id} uses texture '{texture}', which is not loaded")
        return brush

    # === Textures ===

    def drawn_texture(self, brush: Brush, elapsed: float = 0.0) -> Optional[str]:
        """Name of the image a brush shows at `elapsed` seconds."""
        if brush.texture is None:
            return None
        animation = self.document.animation_for(brush)
        if isinstance(animation, ListAnimation):
            return animation.texture_at(elapsed)
        if isinstance(animation, AtlasAnimation):
            return animation.texture
        return brush.texture.texture

    def texture_mapping(self, brush_id: int, elapsed: float = 0.0) -> Optional[TextureMapping]:
        """Texture mapping of a brush of the current document.

        Returns None for untextured brushes and for textures unknown to the
        registry.

        Raises:
            KeyError: If the brush does not exist
        """
        brush = self.document.brushes[brush_id]
        name = self.drawn_texture(brush, elapsed)
        if name is None:
            return None
        size = self.textures.size(name)
        if size is None:
            self.logger.debug(f"Texture '{name}' of brush {brush_id} is not loaded")
            return None
        return brush.texture_mapping(size, self.document.animation_for(brush), elapsed)
