import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from db import init_db, make_engine, make_session_factory  # noqa: E402
from domain.models import Book, Library  # noqa: E402
from repositories import BooksRepository, LibrariesRepository  # noqa: E402
from services import accounts  # noqa: E402


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    # bcrypt's minimum cost keeps hashing out of the test runtime
    monkeypatch.setattr(accounts, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'library.db'}", timeout=30)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def library(session_factory) -> Library:
    with session_factory.begin() as session:
        return LibrariesRepository().create_library(session, Library(id=None, name="Central"))


@pytest.fixture
def add_book(session_factory):
    """Insert a book straight into the inventory; copies start fully available."""

    def _add(library_id: int, isbn: str, copies: int = 1, title: str = "A Book") -> Book:
        with session_factory.begin() as session:
            book, _ = BooksRepository().add_or_increment(
                session,
                Book(id=None, library_id=library_id, isbn=isbn, title=title, total_copies=copies),
            )
        return book

    return _add


@pytest.fixture
def get_book(session_factory):
    def _get(library_id: int, isbn: str) -> Book:
        with session_factory() as session:
            return BooksRepository().get_book(session, library_id, isbn)

    return _get
