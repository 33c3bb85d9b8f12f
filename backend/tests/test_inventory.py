import threading
from unittest.mock import MagicMock, patch

import pytest

from domain.errors import BookHasIssuedCopies, BookNotFound, InvalidInventoryUpdate
from domain.models import Book, RequestStatus
from services.inventory import InventoryService
from services.issue_workflow import IssueWorkflow
from services.qr_codes import QRCodeService
from storage.file_storage import FileStorage


@pytest.fixture
def inventory(session_factory):
    return InventoryService(session_factory)


def _book(library_id, isbn="978-0", copies=2, **details):
    return Book(id=None, library_id=library_id, isbn=isbn, total_copies=copies, **details)


def test_add_book_creates_available_copies(inventory, library):
    result = inventory.add_book(_book(library.id, copies=3, title="Dune", authors="Herbert"))

    assert result.created is True
    assert result.qr_code is None
    assert result.book.total_copies == 3
    assert result.book.available_copies == 3
    assert inventory.get_book(library.id, "978-0").title == "Dune"


def test_add_existing_book_increments_both_counters(inventory, library):
    inventory.add_book(_book(library.id, copies=2))

    result = inventory.add_book(_book(library.id, copies=3))

    assert result.created is False
    assert result.book.total_copies == 5
    assert result.book.available_copies == 5


def test_same_isbn_in_two_libraries_is_two_books(inventory, library, session_factory):
    from services.accounts import AccountsService

    other = AccountsService(session_factory).create_library("Branch")
    inventory.add_book(_book(library.id, copies=1))
    result = inventory.add_book(_book(other.id, copies=4))

    assert result.created is True
    assert inventory.get_book(library.id, "978-0").total_copies == 1
    assert inventory.get_book(other.id, "978-0").total_copies == 4


def test_add_book_generates_qr_for_new_titles_only(session_factory, library):
    qr_service = MagicMock()
    qr_service.generate_for_book.return_value = "qr_codes/qr_1_978-0.png"
    inventory = InventoryService(session_factory, qr_service=qr_service)

    created = inventory.add_book(_book(library.id))
    incremented = inventory.add_book(_book(library.id))

    assert created.qr_code == "qr_codes/qr_1_978-0.png"
    assert incremented.qr_code is None
    qr_service.generate_for_book.assert_called_once()


def test_get_missing_book(inventory, library):
    with pytest.raises(BookNotFound):
        inventory.get_book(library.id, "nope")


def test_list_available_skips_exhausted_books(inventory, library):
    inventory.add_book(_book(library.id, isbn="a", copies=1, title="A"))
    inventory.add_book(_book(library.id, isbn="b", copies=0, title="B"))

    assert [b.isbn for b in inventory.list_books(library.id)] == ["a", "b"]
    assert [b.isbn for b in inventory.list_available(library.id)] == ["a"]


def test_adjust_copies_rejects_broken_invariant(inventory, library):
    inventory.add_book(_book(library.id, copies=1))

    with pytest.raises(InvalidInventoryUpdate):
        inventory.adjust_copies(library.id, "978-0", 0, -2)
    with pytest.raises(InvalidInventoryUpdate):
        inventory.adjust_copies(library.id, "978-0", 0, 1)
    with pytest.raises(InvalidInventoryUpdate):
        inventory.adjust_copies(library.id, "978-0", -2, -2)
    with pytest.raises(BookNotFound):
        inventory.adjust_copies(library.id, "nope", 1, 1)

    book = inventory.get_book(library.id, "978-0")
    assert (book.total_copies, book.available_copies) == (1, 1)


def test_update_book_replaces_details_and_shifts_counters(inventory, session_factory, library):
    inventory.add_book(_book(library.id, copies=3, title="Old"))
    workflow = IssueWorkflow(session_factory)
    request = workflow.submit_request(library.id, "978-0", reader_id=7)
    workflow.approve_request(request.id, approver_id=9)

    book = inventory.update_book(
        library.id, "978-0", title="New", authors="A", publisher="P", version="2", total_copies=5
    )

    assert book.title == "New"
    assert book.version == "2"
    assert book.total_copies == 5
    assert book.available_copies == 4


def test_update_book_total_below_issued_copies(inventory, session_factory, library):
    inventory.add_book(_book(library.id, copies=2))
    workflow = IssueWorkflow(session_factory)
    for reader_id in (7, 8):
        request = workflow.submit_request(library.id, "978-0", reader_id=reader_id)
        workflow.approve_request(request.id, approver_id=9)

    with pytest.raises(InvalidInventoryUpdate):
        inventory.update_book(library.id, "978-0", "T", "", "", "", total_copies=1)

    book = inventory.get_book(library.id, "978-0")
    assert (book.total_copies, book.available_copies) == (2, 0)
    assert book.issued_copies == 2
    assert book.title == ""


def test_update_missing_book(inventory, library):
    with pytest.raises(BookNotFound):
        inventory.update_book(library.id, "nope", "T", "", "", "")


def test_remove_book_with_issued_copies_is_refused(inventory, session_factory, library):
    inventory.add_book(_book(library.id, copies=1))
    workflow = IssueWorkflow(session_factory)
    request = workflow.submit_request(library.id, "978-0", reader_id=7)
    workflow.approve_request(request.id, approver_id=9)

    with pytest.raises(BookHasIssuedCopies):
        inventory.remove_book(library.id, "978-0", remover_id=9)
    assert inventory.get_book(library.id, "978-0").total_copies == 1


def test_remove_book_rejects_pending_requests(session_factory, library):
    qr_service = MagicMock()
    inventory = InventoryService(session_factory, qr_service=qr_service)
    inventory.add_book(_book(library.id, copies=1))
    workflow = IssueWorkflow(session_factory)
    request = workflow.submit_request(library.id, "978-0", reader_id=7)

    inventory.remove_book(library.id, "978-0", remover_id=9)

    with pytest.raises(BookNotFound):
        inventory.get_book(library.id, "978-0")
    [resolved] = workflow.list_requests(library.id)
    assert resolved.id == request.id
    assert resolved.status == RequestStatus.REJECTED
    assert resolved.approver_id == 9
    assert resolved.isbn == "978-0"
    qr_service.remove_for_book.assert_called_once()


def test_returned_history_survives_book_removal(inventory, session_factory, library):
    inventory.add_book(_book(library.id, copies=1))
    workflow = IssueWorkflow(session_factory)
    request = workflow.submit_request(library.id, "978-0", reader_id=7)
    record = workflow.approve_request(request.id, approver_id=9)
    workflow.return_book(record.id, approver_id=9)

    inventory.remove_book(library.id, "978-0", remover_id=9)

    [history] = workflow.list_reader_issues(7)
    assert history.isbn == "978-0"
    assert history.book_id is None


def test_qr_failure_keeps_the_added_book(session_factory, library, tmp_path):
    inventory = InventoryService(session_factory, qr_service=QRCodeService(FileStorage(str(tmp_path))))

    with patch("services.qr_codes.render_qr_image", side_effect=RuntimeError("encoder down")):
        result = inventory.add_book(_book(library.id, copies=2, title="Dune"))

    assert result.created is True
    assert result.qr_code is None
    stored = inventory.get_book(library.id, "978-0")
    assert (stored.title, stored.total_copies, stored.available_copies) == ("Dune", 2, 2)


def test_remove_book_refuses_when_copy_issued_after_check(inventory, session_factory, library):
    inventory.add_book(_book(library.id, copies=1))
    workflow = IssueWorkflow(session_factory)
    request = workflow.submit_request(library.id, "978-0", reader_id=7)
    issued = []

    def count_then_approve(session, book_id):
        # The loan check passes, then an approval lands before the delete
        worker = threading.Thread(
            target=lambda: issued.append(workflow.approve_request(request.id, approver_id=9))
        )
        worker.start()
        worker.join(timeout=30)
        return 0

    with patch.object(inventory.issues_repo, "count_issued", side_effect=count_then_approve):
        with pytest.raises(BookHasIssuedCopies):
            inventory.remove_book(library.id, "978-0", remover_id=10)

    [record] = issued
    book = inventory.get_book(library.id, "978-0")
    assert book.available_copies == 0
    returned = workflow.return_book(record.id, approver_id=9, library_id=library.id)
    assert returned.book_id == book.id
    assert inventory.get_book(library.id, "978-0").available_copies == 1
