"""
Exceptions raised by file_tidy operations.

Only fatal problems are raised. Per-file failures are collected into the
result objects as FileError entries instead.
"""

from pathlib import Path
from typing import Optional, Sequence


class FileTidyError(Exception):
    """Base error for the project."""


class InvalidDirectoryError(FileTidyError, ValueError):
    """The path given to an operation does not exist or is not a directory."""

    def __init__(self, path, reason: Optional[str] = None):
        self.path = Path(path)
        message = f"'{path}' is not a valid directory"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConfigurationError(FileTidyError, ValueError):
    pass


class DuplicateExtensionError(ConfigurationError):
    """An extension is routed to more than one category."""

    def __init__(self, extension: str, categories: Sequence[str]):
        self.extension = extension
        self.categories = tuple(categories)
        super().__init__(
            f"Extension '{extension}' assigned to more than one category: "
            f"{', '.join(self.categories)}"
        )


class MoveError(FileTidyError):
    """A single file could not be moved."""

    def __init__(self, source, destination, message: str):
        self.source = Path(source)
        self.destination = Path(destination)
        super().__init__(f"{source} -> {destination}: {message}")


class DestinationExistsError(MoveError):
    def __init__(self, source, destination):
        super().__init__(source, destination, "destination already exists")
