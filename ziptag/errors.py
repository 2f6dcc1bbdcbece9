"""Error types raised by the ZIP Tagger services."""


class ZipTagError(Exception):
    """Base class; ``str(error)`` is the message shown to the user."""


class InvalidZipError(ZipTagError):
    """Input is not a 5-digit ZIP code (optionally followed by -NNNN)."""


class ZipNotFoundError(ZipTagError):
    """Well-formed ZIP code with no match in the catalog."""


class AmbiguousAddressError(ZipTagError):
    """No ZIP code could be extracted from a free-text address."""


class ImportShapeError(ZipTagError):
    """Uploaded spreadsheet is unreadable or lacks the required columns."""

    def __init__(self, message: str, missing_columns=()):
        super().__init__(message)
        self.missing_columns = tuple(missing_columns)


class ConfirmationRequiredError(ZipTagError):
    """A destructive operation was requested without explicit confirmation."""


class ExportError(ZipTagError):
    pass


class StorageError(ZipTagError):
    pass


class CatalogError(ZipTagError):
    pass
