"""Exception hierarchy for the submission pipeline and catalog store.

Controllers map these to HTTP responses: form errors are returned inline,
content rejections and I/O failures become flash messages on a redirect,
`NotFound` and `PersistenceFailure` are request-fatal.
"""

from typing import Dict, Optional


class SoftwareStoreError(Exception):
    """Base exception for all application-specific errors."""


class ValidationFailure(SoftwareStoreError):
    """Raised when submitted form fields are invalid.

    `errors` maps field names to message keys so the form can show them
    next to the offending inputs.
    """

    def __init__(self, errors: Dict[str, str]):
        super().__init__(", ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = dict(errors)


class ContentRejection(SoftwareStoreError):
    """Raised when an uploaded archive's content is not acceptable."""


class MetadataMissing(ContentRejection):
    """Raised when the archive has no program info entry."""


class MetadataMalformed(ContentRejection):
    """Raised when the program info entry cannot be parsed."""


class IOFailure(SoftwareStoreError):
    """Raised when writing, reading or transferring program files fails."""


class ArchiveFormatFailure(IOFailure):
    """Raised when an uploaded archive cannot be opened or contains unsafe entries."""


class PersistenceFailure(SoftwareStoreError):
    """Raised when the catalog database rejects a write."""


class NotFound(SoftwareStoreError):
    """Raised when a category or program lookup finds nothing."""

    def __init__(self, kind: str, ident: Optional[int]):
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident
