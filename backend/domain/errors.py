"""
Domain errors raised by the lending services.

Each error carries the HTTP status and the user-facing message the API
returns as ``{"error": message}``.
"""


class LibraryError(Exception):
    status_code = 400
    message = "Request could not be processed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class NotFound(LibraryError):
    status_code = 404
    message = "Not found"


class BookNotFound(NotFound):
    status_code = 400
    message = "Book not found in the inventory"


class RequestNotFound(NotFound):
    status_code = 400
    message = "Issue request not found or already approved/rejected"


class IssueNotFound(NotFound):
    message = "Issue record not found"


class UserNotFound(NotFound):
    message = "User not found"


class LibraryNotFound(NotFound):
    status_code = 400
    message = "Library not found"


class NotAvailable(LibraryError):
    message = "Requested book is not available"


class AlreadyResolved(LibraryError):
    message = "Issue request not found or already approved/rejected"


class InventoryInconsistent(LibraryError):
    status_code = 409
    message = "Requested book is no longer available"


class AlreadyReturned(LibraryError):
    status_code = 409
    message = "Book already returned"


class InvalidInventoryUpdate(LibraryError):
    message = "Total copies cannot be lower than the number of issued copies"


class BookHasIssuedCopies(LibraryError):
    message = "Cannot remove book with issued copies"


class OwnerExists(LibraryError):
    message = "Owner already exists for this library"


class DuplicateUser(LibraryError):
    message = "A user with this email already exists"
