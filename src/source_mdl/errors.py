class ModelLoadError(Exception):
    """Base class for everything that can go wrong while loading a model."""

class ModelIOError(ModelLoadError):
    pass

class BadMagic(ModelLoadError):
    pass

class UnsupportedVersion(ModelLoadError):
    pass

class TruncatedBuffer(ModelLoadError):
    pass

class InvalidText(ModelLoadError):
    pass

class CountMismatch(ModelLoadError):
    pass

class ChecksumMismatch(ModelLoadError):
    pass

class BodyPartCountMismatch(ModelLoadError):
    pass
