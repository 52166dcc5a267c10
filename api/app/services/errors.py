class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when an entity with the same unique key already exists."""


class RepositoryValidationError(RepositoryError):
    """Raised when a payload is malformed before it reaches the database."""


class RepositoryUnauthorizedError(RepositoryError):
    """Raised when supplied credentials do not match a user."""
