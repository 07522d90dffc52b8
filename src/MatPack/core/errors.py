"""Exceptions raised while importing a material."""


class MaterialImportError(RuntimeError):
    """Base class for failures that abort a single material import."""


class MissingColorMapError(MaterialImportError):
    """Raised when the Color map is required but no source file matches."""

    def __init__(self, source_dir: str):
        super().__init__(f"Color map not found at {source_dir}")
        self.source_dir = source_dir


class NoSourceDimensionsError(MaterialImportError):
    """Raised when a packed map has no present source to take its size from."""

    def __init__(self, map_type):
        super().__init__(
            f"Cannot size {map_type.value} map: none of its source maps are present"
        )
        self.map_type = map_type


class UnresolvedMapReferenceError(MaterialImportError):
    """Raised when a property references a map type the map set never requested.

    This signals an internal inconsistency between resolution and reading,
    not a user-facing input problem.
    """

    def __init__(self, property_name: str, map_type):
        super().__init__(
            f"Shader property '{property_name}' references {map_type.value} map, "
            "which was never resolved"
        )
        self.property_name = property_name
        self.map_type = map_type
