"""
Core domain models for the library lending backend.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Roles a user can hold within a library."""
    OWNER = "owner"
    ADMIN = "admin"
    READER = "reader"


class RequestType(str, Enum):
    """Kinds of reader requests. Only issuing is supported today."""
    ISSUE = "issue"


class RequestStatus(str, Enum):
    """Resolution state of a request in the ledger."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class IssueStatus(str, Enum):
    """State of a copy handed out to a reader."""
    ISSUED = "issued"
    RETURNED = "returned"


@dataclass
class Library:
    id: Optional[int]
    name: str


@dataclass
class User:
    """
    A person with access to one library.

    `password_hash` holds a bcrypt hash and is never serialized by the API.
    """
    id: Optional[int]
    name: str
    email: str
    role: Role
    library_id: int
    contact_number: str = ""
    password_hash: str = ""

    def has_role(self, role: Role) -> bool:
        return self.role == role


@dataclass
class Book:
    """
    A title held by a library, keyed by (library_id, isbn).

    Invariant: 0 <= available_copies <= total_copies.
    """
    id: Optional[int]
    library_id: int
    isbn: str
    title: str = ""
    authors: str = ""
    publisher: str = ""
    version: str = ""
    total_copies: int = 0
    available_copies: int = 0

    @property
    def issued_copies(self) -> int:
        return self.total_copies - self.available_copies

    def is_consistent(self) -> bool:
        return 0 <= self.available_copies <= self.total_copies


@dataclass
class IssueRequest:
    """
    A reader's request to borrow a book.

    Pending while `approver_id` is unset; resolved exactly once.
    """
    id: Optional[int]
    book_id: Optional[int]
    library_id: int
    isbn: str
    reader_id: int
    request_date: datetime
    request_type: RequestType = RequestType.ISSUE
    status: RequestStatus = RequestStatus.PENDING
    approval_date: Optional[datetime] = None
    approver_id: Optional[int] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING and self.approver_id is None


@dataclass
class IssueRecord:
    """A copy handed to a reader. Only created by approving an issue request."""
    id: Optional[int]
    book_id: Optional[int]
    isbn: str
    reader_id: int
    approver_id: int
    issue_date: datetime
    expected_return_date: datetime
    status: IssueStatus = IssueStatus.ISSUED
    return_date: Optional[datetime] = None
    return_approver_id: Optional[int] = None

    def is_overdue(self, now: datetime) -> bool:
        if self.status == IssueStatus.RETURNED:
            return False
        return self.expected_return_date < now
