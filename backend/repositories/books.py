"""
Book inventory repository backed by SQLAlchemy.

Methods flush but never commit: the caller owns the transaction.
"""
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from domain.models import Book, IssueStatus
from repositories.models import BookORM, IssueORM


def _book_from_orm(orm: BookORM) -> Book:
    return Book(
        id=orm.id,
        library_id=orm.library_id,
        isbn=orm.isbn,
        title=orm.title,
        authors=orm.authors,
        publisher=orm.publisher,
        version=orm.version,
        total_copies=orm.total_copies,
        available_copies=orm.available_copies,
    )


class BooksRepository:
    """Inventory operations keyed by (library_id, isbn)."""

    def _query(self, session: Session, library_id: int, isbn: str):
        return session.query(BookORM).filter(
            BookORM.library_id == library_id, BookORM.isbn == isbn
        )

    def get_book(
        self, session: Session, library_id: int, isbn: str, for_update: bool = False
    ) -> Optional[Book]:
        # Counters are changed with bulk UPDATEs, so always reload from the row
        query = self._query(session, library_id, isbn).populate_existing()
        if for_update:
            query = query.with_for_update()
        orm = query.first()
        return _book_from_orm(orm) if orm else None

    def get_book_by_id(self, session: Session, book_id: int) -> Optional[Book]:
        orm = session.get(BookORM, book_id, populate_existing=True)
        return _book_from_orm(orm) if orm else None

    def list_books(self, session: Session, library_id: int) -> List[Book]:
        books = (
            session.query(BookORM)
            .filter(BookORM.library_id == library_id)
            .order_by(BookORM.title, BookORM.isbn)
            .all()
        )
        return [_book_from_orm(b) for b in books]

    def list_available(self, session: Session, library_id: int) -> List[Book]:
        books = (
            session.query(BookORM)
            .filter(BookORM.library_id == library_id, BookORM.available_copies > 0)
            .order_by(BookORM.title, BookORM.isbn)
            .all()
        )
        return [_book_from_orm(b) for b in books]

    def add_or_increment(self, session: Session, book: Book) -> Tuple[Book, bool]:
        """
        Insert a book or add copies to an existing one.

        Newly added copies are always available, so an existing record gets
        both counters raised by ``book.total_copies``.

        Returns:
            (stored book, True if a new record was created)
        """
        if book.total_copies < 0:
            raise ValueError("total_copies must be non-negative")

        existing = self._query(session, book.library_id, book.isbn).first()
        if existing:
            self._query(session, book.library_id, book.isbn).update(
                {
                    BookORM.total_copies: BookORM.total_copies + book.total_copies,
                    BookORM.available_copies: BookORM.available_copies + book.total_copies,
                },
                synchronize_session=False,
            )
            session.flush()
            session.refresh(existing)
            return _book_from_orm(existing), False

        orm = BookORM(
            library_id=book.library_id,
            isbn=book.isbn,
            title=book.title,
            authors=book.authors,
            publisher=book.publisher,
            version=book.version,
            total_copies=book.total_copies,
            available_copies=book.total_copies,
        )
        session.add(orm)
        session.flush()
        return _book_from_orm(orm), True

    def adjust_copies(
        self,
        session: Session,
        library_id: int,
        isbn: str,
        total_delta: int,
        available_delta: int,
    ) -> Optional[Book]:
        """
        Shift both counters in one conditional UPDATE.

        Returns None when the book does not exist; raises ValueError when the
        result would break 0 <= available <= total.
        """
        new_total = BookORM.total_copies + total_delta
        new_available = BookORM.available_copies + available_delta
        updated = (
            self._query(session, library_id, isbn)
            .filter(new_total >= 0, new_available >= 0, new_available <= new_total)
            .update(
                {BookORM.total_copies: new_total, BookORM.available_copies: new_available},
                synchronize_session=False,
            )
        )
        if not updated:
            if self._query(session, library_id, isbn).first() is None:
                return None
            raise ValueError("Copy adjustment would break the inventory invariant")
        session.flush()
        return self.get_book(session, library_id, isbn)

    def take_copy(self, session: Session, book_id: int) -> bool:
        """Decrement available_copies if one is free. False when none is left."""
        updated = (
            session.query(BookORM)
            .filter(BookORM.id == book_id, BookORM.available_copies > 0)
            .update(
                {BookORM.available_copies: BookORM.available_copies - 1},
                synchronize_session=False,
            )
        )
        return updated == 1

    def put_back_copy(self, session: Session, book_id: int) -> bool:
        """Increment available_copies unless it already equals total_copies."""
        updated = (
            session.query(BookORM)
            .filter(BookORM.id == book_id, BookORM.available_copies < BookORM.total_copies)
            .update(
                {BookORM.available_copies: BookORM.available_copies + 1},
                synchronize_session=False,
            )
        )
        return updated == 1

    def update_details(
        self,
        session: Session,
        library_id: int,
        isbn: str,
        title: str,
        authors: str,
        publisher: str,
        version: str,
    ) -> Optional[Book]:
        orm = self._query(session, library_id, isbn).first()
        if not orm:
            return None
        orm.title = title
        orm.authors = authors
        orm.publisher = publisher
        orm.version = version
        session.add(orm)
        session.flush()
        return _book_from_orm(orm)

    def delete_if_not_issued(self, session: Session, book_id: int) -> bool:
        """
        Delete a book unless an issue record still has one of its copies out.

        The loan check runs inside the DELETE, so an approval committed after
        any earlier read still blocks the removal. False when no row matched.
        """
        on_loan = (
            session.query(IssueORM.id)
            .filter(
                IssueORM.book_id == BookORM.id,
                IssueORM.status == IssueStatus.ISSUED.value,
            )
            .correlate(BookORM)
            .exists()
        )
        deleted = (
            session.query(BookORM)
            .filter(BookORM.id == book_id, ~on_loan)
            .delete(synchronize_session=False)
        )
        return deleted == 1
