import pytest
from fastapi.testclient import TestClient

from api import deps
from api.main import app
from domain.models import Role
from services.accounts import AccountsService
from services.qr_codes import QRCodeService
from storage.file_storage import FileStorage

OWNER = ("owner@example.com", "owner-pw")
ADMIN = ("admin@example.com", "admin-pw")
READER = ("reader@example.com", "reader-pw")


@pytest.fixture
def staff(session_factory, library):
    accounts = AccountsService(session_factory)
    users = {}
    for (email, password), role in ((OWNER, Role.OWNER), (ADMIN, Role.ADMIN), (READER, Role.READER)):
        users[role] = accounts.create_user(role.value.title(), email, password, role, library.id)
    return users


@pytest.fixture
def client(session_factory, staff, tmp_path):
    qr_service = QRCodeService(FileStorage(str(tmp_path / "media")))
    app.dependency_overrides[deps.get_session_factory] = lambda: session_factory
    app.dependency_overrides[deps.get_qr_service] = lambda: qr_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add_book(client, isbn="123", copies=1):
    return client.post(
        "/admin/books",
        json={"isbn": isbn, "title": "Dune", "authors": "Frank Herbert", "total_copies": copies},
        auth=ADMIN,
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_issue_flow_end_to_end(client, staff):
    resp = _add_book(client)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Book added successfully"
    assert resp.json()["qr_code"] == f"qr_codes/qr_{staff[Role.ADMIN].library_id}_123.png"

    resp = client.get("/reader/books", auth=READER)
    assert [b["isbn"] for b in resp.json()] == ["123"]

    resp = client.post("/reader/requests", json={"isbn": "123"}, auth=READER)
    assert resp.status_code == 200
    request = resp.json()
    assert request["status"] == "pending"
    assert request["reader_id"] == staff[Role.READER].id

    resp = client.post(f"/admin/requests/{request['id']}", auth=ADMIN)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Issue request updated successfully"}

    resp = client.post(f"/admin/requests/{request['id']}", auth=ADMIN)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Issue request not found or already approved/rejected"}

    book = client.get("/admin/books/123", auth=ADMIN).json()
    assert book["available_copies"] == 0
    assert client.get("/reader/books", auth=READER).json() == []

    [issue] = client.get("/reader/issues", auth=READER).json()
    assert issue["status"] == "issued"
    assert issue["overdue"] is False
    assert issue["approver_id"] == staff[Role.ADMIN].id

    resp = client.post(f"/admin/issues/{issue['id']}/return", auth=ADMIN)
    assert resp.status_code == 200
    assert resp.json()["status"] == "returned"
    assert client.get("/admin/books/123", auth=ADMIN).json()["available_copies"] == 1

    resp = client.post(f"/admin/issues/{issue['id']}/return", auth=ADMIN)
    assert resp.status_code == 409
    assert resp.json() == {"error": "Book already returned"}


def test_request_unavailable_book(client):
    _add_book(client, isbn="000", copies=0)

    resp = client.post("/reader/requests", json={"isbn": "000"}, auth=READER)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Requested book is not available"}


def test_request_from_other_library_is_forbidden(client, staff):
    _add_book(client)
    other_library = staff[Role.READER].library_id + 1

    resp = client.post(
        "/reader/requests", json={"isbn": "123", "library_id": other_library}, auth=READER
    )

    assert resp.status_code == 403


def test_add_existing_book_increments(client):
    _add_book(client, copies=1)

    resp = _add_book(client, copies=2)

    assert resp.json()["message"] == "Book already exists, copies incremented"
    assert resp.json()["book"]["total_copies"] == 3
    assert resp.json()["book"]["available_copies"] == 3


def test_reject_and_list_requests(client):
    _add_book(client)
    req_id = client.post("/reader/requests", json={"isbn": "123"}, auth=READER).json()["id"]

    resp = client.post(f"/admin/requests/{req_id}/reject", auth=ADMIN)
    assert resp.status_code == 200

    [rejected] = client.get("/admin/requests?status=rejected", auth=ADMIN).json()
    assert rejected["id"] == req_id
    assert client.get("/admin/requests?status=pending", auth=ADMIN).json() == []
    assert client.get("/admin/requests?status=bogus", auth=ADMIN).status_code == 400
    assert client.get("/admin/books/123", auth=ADMIN).json()["available_copies"] == 1


def test_update_and_remove_book(client):
    _add_book(client, copies=2)

    resp = client.put(
        "/admin/books/123",
        json={"title": "Dune Messiah", "authors": "Frank Herbert", "total_copies": 4},
        auth=ADMIN,
    )
    assert resp.json() == {"message": "Book details updated successfully"}
    book = client.get("/admin/books/123", auth=ADMIN).json()
    assert (book["title"], book["total_copies"], book["available_copies"]) == ("Dune Messiah", 4, 4)

    resp = client.delete("/admin/books/123", auth=ADMIN)
    assert resp.json() == {"message": "Book removed successfully"}
    resp = client.get("/admin/books/123", auth=ADMIN)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Book not found in the inventory"}


def test_remove_book_with_issued_copy(client):
    _add_book(client)
    req_id = client.post("/reader/requests", json={"isbn": "123"}, auth=READER).json()["id"]
    client.post(f"/admin/requests/{req_id}", auth=ADMIN)

    resp = client.delete("/admin/books/123", auth=ADMIN)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot remove book with issued copies"}


def test_missing_or_bad_credentials(client):
    assert client.get("/admin/books").status_code == 401
    resp = client.get("/admin/books", auth=(ADMIN[0], "wrong"))
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Basic"


def test_roles_are_enforced(client):
    assert client.get("/admin/books", auth=READER).status_code == 403
    assert client.post("/reader/requests", json={"isbn": "123"}, auth=ADMIN).status_code == 403
    resp = client.post("/owner/libraries", json={"name": "Branch"}, auth=ADMIN)
    assert resp.status_code == 403
    assert resp.json() == {"detail": "owner role required"}


def test_owner_creates_library_and_staff(client):
    resp = client.post("/owner/libraries", json={"name": "Branch"}, auth=OWNER)
    assert resp.status_code == 201
    branch_id = resp.json()["id"]

    resp = client.post(
        "/owner/users",
        json={
            "name": "Bea",
            "email": "bea@example.com",
            "password": "pw",
            "role": "admin",
            "library_id": branch_id,
        },
        auth=OWNER,
    )
    assert resp.status_code == 201
    assert resp.json()["library_id"] == branch_id
    assert "password" not in resp.json()
    assert "password_hash" not in resp.json()

    resp = client.post(
        "/owner/users",
        json={"name": "Bo", "email": "bea@example.com", "password": "pw", "role": "reader"},
        auth=OWNER,
    )
    assert resp.status_code == 400


def test_admin_user_creation_limits(client, staff):
    resp = client.post(
        "/admin/users",
        json={"name": "Rae", "email": "rae@example.com", "password": "pw", "role": "reader"},
        auth=ADMIN,
    )
    assert resp.status_code == 201
    reader_id = resp.json()["id"]

    resp = client.post(
        "/admin/users",
        json={"name": "Oz", "email": "oz@example.com", "password": "pw", "role": "owner"},
        auth=ADMIN,
    )
    assert resp.status_code == 403

    resp = client.get(f"/admin/readers/{reader_id}", auth=ADMIN)
    assert resp.json()["email"] == "rae@example.com"
    assert client.get("/admin/readers/9999", auth=ADMIN).status_code == 404
