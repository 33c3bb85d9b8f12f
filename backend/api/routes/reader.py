"""
Reader API routes: browse available books, raise issue requests.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.auth import require_reader
from api.deps import get_inventory, get_workflow
from api.schemas import (
    BookResponse,
    IssueRecordResponse,
    IssueRequestCreate,
    IssueRequestResponse,
    book_to_response,
    issue_to_response,
    request_to_response,
)
from domain.models import User
from services.inventory import InventoryService
from services.issue_workflow import IssueWorkflow

router = APIRouter(dependencies=[Depends(require_reader)])


@router.post("/requests", response_model=IssueRequestResponse)
def create_issue_request(
    payload: IssueRequestCreate,
    reader: User = Depends(require_reader),
    workflow: IssueWorkflow = Depends(get_workflow),
):
    """Raise an issue request for a book with a free copy in the reader's library."""
    library_id = payload.library_id if payload.library_id is not None else reader.library_id
    if library_id != reader.library_id:
        raise HTTPException(status_code=403, detail="Readers can only request books from their own library")
    request = workflow.submit_request(library_id, payload.isbn, reader.id)
    return request_to_response(request)


@router.get("/books", response_model=List[BookResponse])
def list_available_books(
    reader: User = Depends(require_reader),
    inventory: InventoryService = Depends(get_inventory),
):
    """List books with at least one available copy in the reader's library."""
    return [book_to_response(b) for b in inventory.list_available(reader.library_id)]


@router.get("/issues", response_model=List[IssueRecordResponse])
def list_my_issues(
    reader: User = Depends(require_reader),
    workflow: IssueWorkflow = Depends(get_workflow),
):
    """List the reader's issue records, newest first."""
    return [issue_to_response(i) for i in workflow.list_reader_issues(reader.id)]
