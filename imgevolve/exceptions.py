class ImgEvolveError(Exception):
    """Base for all imgevolve exceptions."""

    pass


# High-level families
class ValidationError(ImgEvolveError):
    """Genome or parameter validation failures."""

    pass


class EvolutionError(ImgEvolveError):
    """Session misuse (missing target image, missing best match)."""

    pass


class PluginError(ImgEvolveError):
    """Plugin registry misuse or capability mismatch."""

    pass


class SnapshotError(ImgEvolveError):
    """Base for session snapshot failures."""

    pass


# Snapshot subtypes
class SnapshotFormatError(SnapshotError):
    """Snapshot was written with an unsupported format version."""

    pass


class SnapshotReadError(SnapshotError):
    """Snapshot stream is truncated or corrupt."""

    pass


class PluginNotFoundError(SnapshotReadError):
    """Snapshot references a plugin tag that is not registered."""

    pass
