"""
Issue workflow: request -> approval -> inventory decrement -> registry entry,
and the matching return path.

Every operation runs in one transaction opened on the injected session
factory. Raising a domain error inside the block rolls back every write made
so far, so callers never observe partial state.

Counter changes are conditional UPDATEs (``available_copies > 0`` to issue,
``available_copies < total_copies`` to return). When two approvals race for
the last copy, the database serializes the writers and the loser's UPDATE
matches no row, which surfaces as InventoryInconsistent.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import sessionmaker

from domain.errors import (
    AlreadyResolved,
    AlreadyReturned,
    InventoryInconsistent,
    IssueNotFound,
    NotAvailable,
    RequestNotFound,
)
from domain.models import (
    IssueRecord,
    IssueRequest,
    IssueStatus,
    RequestStatus,
    RequestType,
)
from repositories import BooksRepository, IssuesRepository, RequestsRepository

logger = logging.getLogger(__name__)

DEFAULT_LOAN_PERIOD_DAYS = 30


class IssueWorkflow:
    """Orchestrates the request ledger, inventory and issue registry."""

    def __init__(
        self,
        session_factory: sessionmaker,
        loan_period_days: int = DEFAULT_LOAN_PERIOD_DAYS,
        clock: Callable[[], datetime] = datetime.utcnow,
        books_repo: Optional[BooksRepository] = None,
        requests_repo: Optional[RequestsRepository] = None,
        issues_repo: Optional[IssuesRepository] = None,
    ):
        self.session_factory = session_factory
        self.loan_period = timedelta(days=loan_period_days)
        self.clock = clock
        self.books_repo = books_repo or BooksRepository()
        self.requests_repo = requests_repo or RequestsRepository()
        self.issues_repo = issues_repo or IssuesRepository()

    def submit_request(self, library_id: int, isbn: str, reader_id: int) -> IssueRequest:
        """
        Record a pending issue request for a book that has a free copy.

        Raises:
            NotAvailable: the book is unknown or has no available copies
        """
        with self.session_factory.begin() as session:
            book = self.books_repo.get_book(session, library_id, isbn)
            if book is None or book.available_copies <= 0:
                logger.warning(
                    "Rejecting request from reader %s: isbn=%s not available in library %s",
                    reader_id, isbn, library_id,
                )
                raise NotAvailable()

            request = self.requests_repo.insert(
                session,
                IssueRequest(
                    id=None,
                    book_id=book.id,
                    library_id=library_id,
                    isbn=isbn,
                    reader_id=reader_id,
                    request_date=self.clock(),
                    request_type=RequestType.ISSUE,
                ),
            )
        logger.info("Issue request %s created for isbn=%s reader=%s", request.id, isbn, reader_id)
        return request

    def list_requests(
        self, library_id: int, status: Optional[RequestStatus] = None
    ) -> List[IssueRequest]:
        with self.session_factory() as session:
            return self.requests_repo.list_for_library(session, library_id, status)

    def list_reader_issues(self, reader_id: int) -> List[IssueRecord]:
        with self.session_factory() as session:
            return self.issues_repo.list_for_reader(session, reader_id)

    def _load_pending(self, session, request_id: int, library_id: Optional[int]) -> IssueRequest:
        request = self.requests_repo.get(session, request_id, for_update=True)
        if request is None or request.request_type != RequestType.ISSUE:
            raise RequestNotFound()
        if library_id is not None and request.library_id != library_id:
            raise RequestNotFound()
        if not request.is_pending:
            raise AlreadyResolved()
        return request

    def approve_request(
        self, request_id: int, approver_id: int, library_id: Optional[int] = None
    ) -> IssueRecord:
        """
        Approve a pending issue request and hand out one copy.

        Marks the request approved, takes one available copy and writes the
        issue record, all in one transaction.

        Args:
            request_id: Ledger id of the request
            approver_id: Admin approving the request
            library_id: When given, the request must belong to this library

        Raises:
            RequestNotFound: no such issue request (or outside `library_id`)
            AlreadyResolved: the request was already approved or rejected
            InventoryInconsistent: no copy was left when the decrement ran
        """
        with self.session_factory.begin() as session:
            request = self._load_pending(session, request_id, library_id)
            now = self.clock()

            if not self.requests_repo.mark_approved(session, request_id, approver_id, now):
                raise AlreadyResolved()

            if request.book_id is None or not self.books_repo.take_copy(session, request.book_id):
                logger.warning(
                    "Approval of request %s aborted: no copy of isbn=%s left",
                    request_id, request.isbn,
                )
                raise InventoryInconsistent()

            record = self.issues_repo.insert(
                session,
                IssueRecord(
                    id=None,
                    book_id=request.book_id,
                    isbn=request.isbn,
                    reader_id=request.reader_id,
                    approver_id=approver_id,
                    issue_date=now,
                    expected_return_date=now + self.loan_period,
                    status=IssueStatus.ISSUED,
                ),
            )
        logger.info(
            "Request %s approved by %s: issue %s due %s",
            request_id, approver_id, record.id, record.expected_return_date.date().isoformat(),
        )
        return record

    def reject_request(
        self, request_id: int, approver_id: int, library_id: Optional[int] = None
    ) -> IssueRequest:
        """Resolve a pending request as rejected. Inventory is untouched."""
        with self.session_factory.begin() as session:
            request = self._load_pending(session, request_id, library_id)
            now = self.clock()
            if not self.requests_repo.mark_rejected(session, request_id, approver_id, now):
                raise AlreadyResolved()
        request.status = RequestStatus.REJECTED
        request.approver_id = approver_id
        request.approval_date = now
        logger.info("Request %s rejected by %s", request_id, approver_id)
        return request

    def return_book(
        self, issue_id: int, approver_id: int, library_id: Optional[int] = None
    ) -> IssueRecord:
        """
        Close an issue record and put the copy back on the shelf.

        Raises:
            IssueNotFound: no such issue record (or outside `library_id`)
            AlreadyReturned: the record is already closed
            InventoryInconsistent: the book already has all copies available
        """
        with self.session_factory.begin() as session:
            record = self.issues_repo.get(session, issue_id)
            if record is None:
                raise IssueNotFound()
            if library_id is not None:
                book = (
                    self.books_repo.get_book_by_id(session, record.book_id)
                    if record.book_id is not None
                    else None
                )
                if book is None or book.library_id != library_id:
                    raise IssueNotFound()
            if record.status == IssueStatus.RETURNED:
                raise AlreadyReturned()

            now = self.clock()
            if not self.issues_repo.mark_returned(session, issue_id, approver_id, now):
                raise AlreadyReturned()
            if record.book_id is not None and not self.books_repo.put_back_copy(session, record.book_id):
                logger.warning(
                    "Return of issue %s aborted: isbn=%s already has every copy available",
                    issue_id, record.isbn,
                )
                raise InventoryInconsistent()

        record.status = IssueStatus.RETURNED
        record.return_date = now
        record.return_approver_id = approver_id
        logger.info("Issue %s returned, approved by %s", issue_id, approver_id)
        return record
