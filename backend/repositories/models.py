"""
SQLAlchemy ORM models for persistence.
"""
from datetime import datetime
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from db import Base


class LibraryORM(Base):
    __tablename__ = "libraries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)

    users = relationship("UserORM", back_populates="library")
    books = relationship("BookORM", back_populates="library")


class UserORM(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    contact_number = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)
    library_id = Column(Integer, ForeignKey("libraries.id"), nullable=False, index=True)

    library = relationship("LibraryORM", back_populates="users")


class BookORM(Base):
    __tablename__ = "books"
    __table_args__ = (
        UniqueConstraint("library_id", "isbn", name="uq_books_library_isbn"),
        CheckConstraint("total_copies >= 0", name="ck_books_total_non_negative"),
        CheckConstraint("available_copies >= 0", name="ck_books_available_non_negative"),
        CheckConstraint(
            "available_copies <= total_copies", name="ck_books_available_within_total"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    library_id = Column(Integer, ForeignKey("libraries.id"), nullable=False, index=True)
    isbn = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False, default="")
    authors = Column(String, nullable=False, default="")
    publisher = Column(String, nullable=False, default="")
    version = Column(String, nullable=False, default="")
    total_copies = Column(Integer, nullable=False, default=0)
    available_copies = Column(Integer, nullable=False, default=0)

    library = relationship("LibraryORM", back_populates="books")


class RequestORM(Base):
    __tablename__ = "requests"
    # User ids are plain references so ledger history outlives accounts

    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(
        Integer, ForeignKey("books.id", ondelete="SET NULL"), nullable=True, index=True
    )
    library_id = Column(Integer, ForeignKey("libraries.id"), nullable=False, index=True)
    isbn = Column(String, nullable=False)
    reader_id = Column(Integer, nullable=False, index=True)
    request_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    approval_date = Column(DateTime, nullable=True)
    approver_id = Column(Integer, nullable=True, index=True)
    request_type = Column(String, nullable=False, default="issue")
    status = Column(String, nullable=False, default="pending", index=True)


class IssueORM(Base):
    __tablename__ = "issue_registry"

    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(
        Integer, ForeignKey("books.id", ondelete="SET NULL"), nullable=True, index=True
    )
    isbn = Column(String, nullable=False)
    reader_id = Column(Integer, nullable=False, index=True)
    approver_id = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="issued")
    issue_date = Column(DateTime, nullable=False)
    expected_return_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime, nullable=True)
    return_approver_id = Column(Integer, nullable=True)
