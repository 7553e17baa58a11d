from __future__ import annotations


class FolderIconError(Exception):
    """Mother exception."""

    def __init__(self, message: str = "", *, reason: str = "", path: str = "") -> None:
        super().__init__(message or self.__doc__)
        self.reason = reason
        self.path = path
        # Set by the assignment service to the step that failed.
        self.state = None


class NoIconConfigured(FolderIconError):
    """The folder has no usable icon entry and no new icon was given."""


class ConfigNotFound(NoIconConfigured):
    """The folder has no desktop.ini file."""


class InvalidIconFile(FolderIconError):
    """The icon source is missing, unreadable or of an unsupported type."""


class IconIndexRequired(FolderIconError):
    """A .dll icon source was given without an icon index."""


class MalformedEntry(FolderIconError):
    """The IconResource value could not be parsed."""


class ConfigWriteError(FolderIconError):
    """desktop.ini could not be written."""


class AttributeReadError(FolderIconError):
    """File attributes could not be read."""


class AttributeWriteError(FolderIconError):
    """File attributes could not be written."""


class ShellRefreshFailed(FolderIconError):
    """The shell refused to apply the folder icon."""

    def __init__(self, message: str = "", *, code: int = 0, path: str = "") -> None:
        super().__init__(message, reason="shell", path=path)
        self.code = code


class InvalidAttributeSpec(FolderIconError, ValueError):
    """The attribute specification is not made of +H, -H, +S, -S tokens."""


class FolderNotFound(FolderIconError):
    """The target folder does not exist."""
