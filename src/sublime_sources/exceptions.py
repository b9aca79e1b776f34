"""Custom exceptions for sublime-sources."""


class SublimeSourcesError(Exception):
    """Base exception for sublime-sources."""


class PomNotFoundError(SublimeSourcesError):
    """Raised when a pom.xml file cannot be found."""


class PomParseError(SublimeSourcesError):
    """Raised when a pom.xml file cannot be parsed."""


class PomModelError(SublimeSourcesError):
    """Raised when required Maven model fields are missing or invalid."""


class ResolutionError(SublimeSourcesError):
    """Raised when the artifacts of a module cannot be resolved."""


class ExtractionError(SublimeSourcesError, OSError):
    """Raised when the external sources directory cannot be prepared or filled."""


class DescriptorParseError(SublimeSourcesError):
    """Raised when an existing project file is not a valid descriptor."""


class DescriptorWriteError(SublimeSourcesError, OSError):
    """Raised when the project file cannot be written."""
