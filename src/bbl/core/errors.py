"""
Error types for bbl load balancer operations.
"""

from collections.abc import Iterable


class BblError(Exception):
    """Base exception for all bbl errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ValidationError(BblError):
    """
    Raised when a command is invoked with flags or state it cannot act on.

    Examples:
    - Missing or unknown --type
    - A different load balancer is already attached
    - No load balancer attached when one is required
    """

    pass


class CertificateError(BblError):
    """
    Raised when certificate, key or chain files fail validation.

    Examples:
    - File does not exist or cannot be read
    - File is not valid PEM
    - Private key does not match the certificate
    """

    pass


class CertificateNotFoundError(BblError):
    """Raised when a named server certificate does not exist."""

    pass


class BBLNotFoundError(BblError):
    """Raised when the target bbl environment cannot be found."""

    pass


class StateError(BblError):
    """Raised when state cannot be loaded or saved."""

    pass


class ErrorList(BblError):
    """
    Aggregate of several errors reported as one.

    The message lists every collected error in the order added:

        the following errors occurred:
        first error,
        second error
    """

    def __init__(self, errors: Iterable[BaseException | str] = ()):
        self.errors: list[str] = []
        for error in errors:
            self.add(error)
        super().__init__(self._format_message())

    def add(self, error: BaseException | str) -> None:
        """Add an error to the list."""
        self.errors.append(str(error))
        self.message = self._format_message()

    def __len__(self) -> int:
        return len(self.errors)

    def _format_message(self) -> str:
        return "the following errors occurred:\n" + ",\n".join(self.errors)
