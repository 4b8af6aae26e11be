"""
Service Errors

Exception hierarchy shared by the repository, the extraction pipeline and
the queue processor.
"""


class RecipeAppError(Exception):
    """Base class for all application errors."""
    pass


class InputError(RecipeAppError):
    """Raised when a request is rejected before any work is queued."""
    pass


class NotFoundError(RecipeAppError):
    """Raised when a user, recipe or token does not exist."""
    pass


class PersistenceError(RecipeAppError):
    """Raised when a data store write or read fails."""
    pass


class ExtractionError(RecipeAppError):
    """Raised when a recipe could not be extracted from a page."""
    pass


class BrowserUnavailableError(ExtractionError):
    """Raised when no usable Chromium/Chrome binary can be located."""
    pass


class RenderError(ExtractionError):
    """Raised when the headless browser fails to load a page."""
    pass


class FetchError(ExtractionError):
    """Raised when a plain HTTP fetch fails."""
    pass


class AIResponseError(ExtractionError):
    """Raised when the AI service fails or returns an unusable response."""
    pass


class StorageError(RecipeAppError):
    """Raised when the object store rejects an upload or read."""
    pass
