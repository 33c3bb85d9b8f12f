"""
Admin API routes: inventory, request approval and returns.

Every route is scoped to the admin's own library.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from api.auth import require_admin
from api.deps import get_accounts, get_inventory, get_workflow
from api.schemas import (
    BookCreate,
    BookResponse,
    BookUpdate,
    IssueRecordResponse,
    IssueRequestResponse,
    MessageResponse,
    UserCreate,
    UserResponse,
    book_to_response,
    issue_to_response,
    request_to_response,
    user_to_response,
)
from domain.errors import UserNotFound
from domain.models import Book, RequestStatus, Role, User
from services.accounts import AccountsService
from services.inventory import InventoryService
from services.issue_workflow import IssueWorkflow

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    payload: UserCreate,
    admin: User = Depends(require_admin),
    accounts: AccountsService = Depends(get_accounts),
):
    """Create an admin or reader in the admin's library."""
    if payload.role == Role.OWNER:
        raise HTTPException(status_code=403, detail="Admins cannot create owners")
    if payload.library_id is not None and payload.library_id != admin.library_id:
        raise HTTPException(status_code=403, detail="Admins can only create users in their own library")
    user = accounts.create_user(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        library_id=admin.library_id,
        contact_number=payload.contact_number,
    )
    return user_to_response(user)


@router.post("/books")
def add_book(
    payload: BookCreate,
    admin: User = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory),
):
    """Add a book, or add copies when the ISBN is already in the inventory."""
    result = inventory.add_book(
        Book(
            id=None,
            library_id=admin.library_id,
            isbn=payload.isbn,
            title=payload.title,
            authors=payload.authors,
            publisher=payload.publisher,
            version=payload.version,
            total_copies=payload.total_copies,
        )
    )
    book = book_to_response(result.book).model_dump()
    if not result.created:
        return {"message": "Book already exists, copies incremented", "book": book}
    return {"message": "Book added successfully", "qr_code": result.qr_code, "book": book}


@router.get("/books", response_model=List[BookResponse])
def list_books(
    admin: User = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory),
):
    return [book_to_response(b) for b in inventory.list_books(admin.library_id)]


@router.get("/books/{isbn}", response_model=BookResponse)
def get_book(
    isbn: str,
    admin: User = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory),
):
    return book_to_response(inventory.get_book(admin.library_id, isbn))


@router.put("/books/{isbn}", response_model=MessageResponse)
def update_book(
    isbn: str,
    payload: BookUpdate,
    admin: User = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory),
):
    """Replace a book's details; a new total shifts available copies by the same delta."""
    inventory.update_book(
        admin.library_id,
        isbn,
        title=payload.title,
        authors=payload.authors,
        publisher=payload.publisher,
        version=payload.version,
        total_copies=payload.total_copies,
    )
    return MessageResponse(message="Book details updated successfully")


@router.delete("/books/{isbn}", response_model=MessageResponse)
def remove_book(
    isbn: str,
    admin: User = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory),
):
    inventory.remove_book(admin.library_id, isbn, admin.id)
    return MessageResponse(message="Book removed successfully")


@router.get("/requests", response_model=List[IssueRequestResponse])
def list_issue_requests(
    status: Optional[str] = None,
    admin: User = Depends(require_admin),
    workflow: IssueWorkflow = Depends(get_workflow),
):
    """List issue requests for the admin's library, optionally filtered by status."""
    status_enum = None
    if status:
        try:
            status_enum = RequestStatus(status)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
    requests = workflow.list_requests(admin.library_id, status_enum)
    return [request_to_response(r) for r in requests]


@router.post("/requests/{req_id}", response_model=MessageResponse)
def approve_issue_request(
    req_id: int,
    admin: User = Depends(require_admin),
    workflow: IssueWorkflow = Depends(get_workflow),
):
    """Approve a pending issue request: take one copy and open an issue record."""
    workflow.approve_request(req_id, admin.id, library_id=admin.library_id)
    return MessageResponse(message="Issue request updated successfully")


@router.post("/requests/{req_id}/reject", response_model=MessageResponse)
def reject_issue_request(
    req_id: int,
    admin: User = Depends(require_admin),
    workflow: IssueWorkflow = Depends(get_workflow),
):
    workflow.reject_request(req_id, admin.id, library_id=admin.library_id)
    return MessageResponse(message="Issue request updated successfully")


@router.post("/issues/{issue_id}/return", response_model=IssueRecordResponse)
def return_book(
    issue_id: int,
    admin: User = Depends(require_admin),
    workflow: IssueWorkflow = Depends(get_workflow),
):
    """Close an issue record and put the copy back in the inventory."""
    record = workflow.return_book(issue_id, admin.id, library_id=admin.library_id)
    return issue_to_response(record)


@router.get("/readers/{reader_id}", response_model=UserResponse)
def get_reader_info(
    reader_id: int,
    admin: User = Depends(require_admin),
    accounts: AccountsService = Depends(get_accounts),
):
    user = accounts.get_user(reader_id)
    if user.library_id != admin.library_id:
        raise UserNotFound()
    return user_to_response(user)
