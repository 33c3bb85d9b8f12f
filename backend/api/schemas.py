"""
Request and response models shared by the routers.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from domain.models import Book, IssueRecord, IssueRequest, Library, Role, User


class LibraryCreate(BaseModel):
    name: str = Field(min_length=1)


class LibraryResponse(BaseModel):
    id: int
    name: str


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    role: Role
    contact_number: str = ""
    library_id: Optional[int] = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    contact_number: str
    role: str
    library_id: int


class BookCreate(BaseModel):
    isbn: str = Field(min_length=1)
    title: str = ""
    authors: str = ""
    publisher: str = ""
    version: str = ""
    total_copies: int = Field(default=1, ge=0)


class BookUpdate(BaseModel):
    title: str = ""
    authors: str = ""
    publisher: str = ""
    version: str = ""
    total_copies: Optional[int] = Field(default=None, ge=0)


class BookResponse(BaseModel):
    id: int
    library_id: int
    isbn: str
    title: str
    authors: str
    publisher: str
    version: str
    total_copies: int
    available_copies: int


class IssueRequestCreate(BaseModel):
    isbn: str = Field(min_length=1)
    library_id: Optional[int] = None


class IssueRequestResponse(BaseModel):
    id: int
    book_id: Optional[int] = None
    library_id: int
    isbn: str
    reader_id: int
    request_date: datetime
    approval_date: Optional[datetime] = None
    approver_id: Optional[int] = None
    request_type: str
    status: str


class IssueRecordResponse(BaseModel):
    id: int
    book_id: Optional[int] = None
    isbn: str
    reader_id: int
    approver_id: int
    status: str
    issue_date: datetime
    expected_return_date: datetime
    return_date: Optional[datetime] = None
    return_approver_id: Optional[int] = None
    overdue: bool = False


class MessageResponse(BaseModel):
    message: str


def library_to_response(library: Library) -> LibraryResponse:
    return LibraryResponse(id=library.id, name=library.name)


def user_to_response(user: User) -> UserResponse:
    """Convert domain User to API response (password hash excluded)."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        contact_number=user.contact_number,
        role=user.role.value,
        library_id=user.library_id,
    )


def book_to_response(book: Book) -> BookResponse:
    return BookResponse(
        id=book.id,
        library_id=book.library_id,
        isbn=book.isbn,
        title=book.title,
        authors=book.authors,
        publisher=book.publisher,
        version=book.version,
        total_copies=book.total_copies,
        available_copies=book.available_copies,
    )


def request_to_response(request: IssueRequest) -> IssueRequestResponse:
    return IssueRequestResponse(
        id=request.id,
        book_id=request.book_id,
        library_id=request.library_id,
        isbn=request.isbn,
        reader_id=request.reader_id,
        request_date=request.request_date,
        approval_date=request.approval_date,
        approver_id=request.approver_id,
        request_type=request.request_type.value,
        status=request.status.value,
    )


def issue_to_response(record: IssueRecord, now: Optional[datetime] = None) -> IssueRecordResponse:
    """Convert an issue record; `overdue` is judged against `now` (UTC)."""
    return IssueRecordResponse(
        id=record.id,
        book_id=record.book_id,
        isbn=record.isbn,
        reader_id=record.reader_id,
        approver_id=record.approver_id,
        status=record.status.value,
        issue_date=record.issue_date,
        expected_return_date=record.expected_return_date,
        return_date=record.return_date,
        return_approver_id=record.return_approver_id,
        overdue=record.is_overdue(now or datetime.utcnow()),
    )
