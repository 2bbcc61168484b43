"""Exception taxonomy for bibmerge.

File-level failures (``ParseError``) are recoverable and become diagnostics;
directory and commit failures abort the whole merge, and an in-place rewrite
that would lose content is refused before anything is merged.
"""

__all__ = [
    "BibMergeError",
    "DirectoryReadError",
    "ParseError",
    "MergeInvariantError",
    "UnsafeOverwriteError",
]


class BibMergeError(Exception):
    """Base class for all bibmerge errors."""


class DirectoryReadError(BibMergeError):
    """Raised when a directory to scan cannot be read."""

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize directory read error.

        Parameters
        ----------
        message : str
            Error message.
        path : str | None, optional
            Directory that could not be read.
        """
        super().__init__(message)
        self.path = path


class ParseError(BibMergeError):
    """Raised when a source file cannot be parsed at all."""

    def __init__(
        self,
        message: str,
        file: str | None = None,
    ) -> None:
        """Initialize parse error.

        Parameters
        ----------
        message : str
            Error message.
        file : str | None, optional
            File where error occurred.
        """
        super().__init__(message)
        self.file = file


class MergeInvariantError(BibMergeError):
    """Raised when committing would break the unique citation key invariant."""

    def __init__(self, message: str, citation_key: str | None = None) -> None:
        super().__init__(message)
        self.citation_key = citation_key


class UnsafeOverwriteError(BibMergeError):
    """Raised when rewriting a file in place would drop part of its content."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        reasons: tuple[str, ...] = (),
    ) -> None:
        """Initialize unsafe overwrite error.

        Parameters
        ----------
        message : str
            Error message.
        path : str | None, optional
            File that would have been overwritten.
        reasons : tuple[str, ...], optional
            Parser warnings describing the content that would be lost.
        """
        super().__init__(message)
        self.path = path
        self.reasons = reasons
