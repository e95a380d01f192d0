"""Exceptions raised by the admin services and mapped to HTTP by the blueprint."""


class ValidationError(Exception):
    """One or more fields failed validation.

    ``errors`` maps a field name (or ``images.<color>`` for image problems)
    to a human readable message.
    """

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__("Please fix the errors before submitting")


class PreconditionError(Exception):
    """The submit attempt cannot start: no identity, no product reference."""


class SaveError(Exception):
    """Persisting a product failed.

    ``upload_errors`` is a list of ``{"message", "code"}`` dicts for files
    that could not be stored; ``errors`` is the legacy flat list of
    validation messages.
    """

    def __init__(self, message, upload_errors=None, errors=None):
        self.message = message
        self.upload_errors = list(upload_errors or [])
        self.errors = list(errors or [])
        super().__init__(message)

    def to_dict(self):
        data = {"error": self.message}
        if self.upload_errors:
            data["upload_errors"] = self.upload_errors
        if self.errors:
            data["errors"] = self.errors
        return data


class StorageError(Exception):
    """An object storage call failed for one file."""

    def __init__(self, message, code=None):
        self.message = message
        self.code = code
        super().__init__(message)


class CatalogError(Exception):
    """A catalog attribute change was refused."""

    def __init__(self, message, blocking_products=None):
        self.message = message
        self.blocking_products = list(blocking_products or [])
        super().__init__(message)


class NotFound(Exception):
    pass
