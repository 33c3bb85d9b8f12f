"""
Admin-facing inventory operations: add, edit and remove books.

Copy counters follow one rule: copies an admin adds are available
immediately, and editing the total shifts the available count by the same
amount.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from domain.errors import BookHasIssuedCopies, BookNotFound, InvalidInventoryUpdate
from domain.models import Book
from repositories import BooksRepository, IssuesRepository, RequestsRepository
from services.qr_codes import QRCodeService

logger = logging.getLogger(__name__)


@dataclass
class AddBookResult:
    book: Book
    created: bool
    qr_code: Optional[str] = None


class InventoryService:
    def __init__(
        self,
        session_factory: sessionmaker,
        qr_service: Optional[QRCodeService] = None,
        books_repo: Optional[BooksRepository] = None,
        issues_repo: Optional[IssuesRepository] = None,
        requests_repo: Optional[RequestsRepository] = None,
    ):
        self.session_factory = session_factory
        self.qr_service = qr_service
        self.books_repo = books_repo or BooksRepository()
        self.issues_repo = issues_repo or IssuesRepository()
        self.requests_repo = requests_repo or RequestsRepository()

    def get_book(self, library_id: int, isbn: str) -> Book:
        with self.session_factory() as session:
            book = self.books_repo.get_book(session, library_id, isbn)
        if book is None:
            raise BookNotFound()
        return book

    def list_books(self, library_id: int) -> List[Book]:
        with self.session_factory() as session:
            return self.books_repo.list_books(session, library_id)

    def list_available(self, library_id: int) -> List[Book]:
        with self.session_factory() as session:
            return self.books_repo.list_available(session, library_id)

    def add_book(self, book: Book) -> AddBookResult:
        """
        Add a new title or more copies of an existing one.

        The QR label is only generated for new titles, after the commit.
        """
        with self.session_factory.begin() as session:
            stored, created = self.books_repo.add_or_increment(session, book)

        qr_code = None
        if created:
            logger.info("Book isbn=%s added to library %s", stored.isbn, stored.library_id)
            if self.qr_service is not None:
                qr_code = self.qr_service.generate_for_book(stored)
        else:
            logger.info(
                "Book isbn=%s in library %s incremented by %s copies",
                stored.isbn, stored.library_id, book.total_copies,
            )
        return AddBookResult(book=stored, created=created, qr_code=qr_code)

    def adjust_copies(
        self, library_id: int, isbn: str, total_delta: int, available_delta: int
    ) -> Book:
        with self.session_factory.begin() as session:
            try:
                book = self.books_repo.adjust_copies(
                    session, library_id, isbn, total_delta, available_delta
                )
            except ValueError as e:
                raise InvalidInventoryUpdate() from e
            if book is None:
                raise BookNotFound()
        return book

    def update_book(
        self,
        library_id: int,
        isbn: str,
        title: str,
        authors: str,
        publisher: str,
        version: str,
        total_copies: Optional[int] = None,
    ) -> Book:
        """
        Replace a book's details and optionally its total copy count.

        Raises:
            BookNotFound: no such book in the library
            InvalidInventoryUpdate: the new total is below the issued copies
        """
        with self.session_factory.begin() as session:
            book = self.books_repo.update_details(
                session, library_id, isbn, title, authors, publisher, version
            )
            if book is None:
                raise BookNotFound()
            if total_copies is not None and total_copies < book.issued_copies:
                raise InvalidInventoryUpdate()
            if total_copies is not None and total_copies != book.total_copies:
                delta = total_copies - book.total_copies
                try:
                    book = self.books_repo.adjust_copies(session, library_id, isbn, delta, delta)
                except ValueError as e:
                    raise InvalidInventoryUpdate() from e
        return book

    def remove_book(self, library_id: int, isbn: str, remover_id: int) -> Book:
        """
        Delete a book that has no copies out on loan.

        Pending requests for the book are resolved as rejected by the remover.
        """
        with self.session_factory.begin() as session:
            book = self.books_repo.get_book(session, library_id, isbn, for_update=True)
            if book is None:
                raise BookNotFound()
            if self.issues_repo.count_issued(session, book.id) > 0:
                raise BookHasIssuedCopies()
            now = datetime.utcnow()
            pending = self.requests_repo.get_pending(session, book_id=book.id)
            for request in pending:
                self.requests_repo.mark_rejected(session, request.id, remover_id, now)
            if not self.books_repo.delete_if_not_issued(session, book.id):
                if self.books_repo.get_book_by_id(session, book.id) is None:
                    raise BookNotFound()
                logger.warning("Removal of isbn=%s aborted: a copy was issued meanwhile", isbn)
                raise BookHasIssuedCopies()

        if pending:
            logger.info("Rejected %s pending requests for removed isbn=%s", len(pending), isbn)
        if self.qr_service is not None:
            self.qr_service.remove_for_book(book)
        logger.info("Book isbn=%s removed from library %s", isbn, library_id)
        return book
