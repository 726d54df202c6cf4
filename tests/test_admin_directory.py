import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from werkzeug.security import check_password_hash

from adminpanel.core.database import Base
from adminpanel.core.errors import ValidationError
from adminpanel.domain.admins import models  # noqa: F401
from adminpanel.domain.admins.repository import (
    InMemoryAdminRepository,
    RemoteAdminRepository,
    SqlAdminRepository,
)
from adminpanel.domain.admins.schemas import AdminCreate, AdminUpdate
from adminpanel.domain.admins.services import AdminDirectoryService


def _new_admin(email="new@example.com", password="s3cret", confirm=None, **names):
    return AdminCreate(
        email=email,
        password=password,
        confirm_password=password if confirm is None else confirm,
        **names,
    )


@pytest.fixture
def repository():
    return InMemoryAdminRepository.seeded()


@pytest.fixture
def directory(repository):
    return AdminDirectoryService(repository)


async def test_create_rejects_mismatched_passwords(directory, repository):
    before = len(repository)

    with pytest.raises(ValidationError, match="Passwords do not match."):
        await directory.create(_new_admin(password="one", confirm="two"))

    assert len(repository) == before


async def test_create_assigns_increasing_ids(directory):
    first = await directory.create(_new_admin("a@example.com", first_name="Ann"))
    second = await directory.create(_new_admin("b@example.com"))

    assert (first.id, second.id) == (2, 3)
    assert [admin.email for admin in await directory.list()][-2:] == ["a@example.com", "b@example.com"]


async def test_create_stores_only_a_password_hash(directory, repository):
    admin = await directory.create(_new_admin(password="hunter22"))

    stored = repository.password_hash_for(admin.id)
    assert stored != "hunter22"
    assert check_password_hash(stored, "hunter22")
    assert "password" not in admin.model_dump()


async def test_update_merges_given_fields(directory):
    updated = await directory.update(1, AdminUpdate(last_name="Smith"))

    assert updated.last_name == "Smith"
    assert updated.first_name == "Jane"
    assert updated.email == "admin@example.com"


async def test_update_unknown_id_returns_none(directory, repository):
    before = await directory.list()

    assert await directory.update(999, {"first_name": "Nobody"}) is None
    assert await directory.list() == before


async def test_update_rejects_empty_email(directory):
    with pytest.raises(ValidationError):
        await directory.update(1, {"email": ""})


async def test_delete_removes_and_ignores_unknown_ids(directory, repository):
    await directory.delete(999)
    assert len(repository) == 1

    await directory.delete(1)
    assert len(repository) == 0
    assert await directory.get(1) is None


async def test_search_is_case_insensitive_across_fields(directory):
    await directory.create(_new_admin("ops@example.com", first_name="Omar", last_name="Reyes"))

    assert [a.email for a in await directory.search("JANE")] == ["admin@example.com"]
    assert [a.email for a in await directory.search("reY")] == ["ops@example.com"]
    assert len(await directory.search("  ")) == 2
    assert await directory.search("zzz") == []


@pytest.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


async def test_sql_repository_round_trip(db_session):
    directory = AdminDirectoryService(SqlAdminRepository(db_session))

    first = await directory.create(_new_admin("one@example.com", first_name="Uno"))
    second = await directory.create(_new_admin("two@example.com", last_name="Dos"))
    assert (first.id, second.id) == (1, 2)

    updated = await directory.update(second.id, {"first_name": "Two"})
    assert updated.first_name == "Two"
    assert await directory.update(42, {"first_name": "Ghost"}) is None

    assert [a.email for a in await directory.search("UNO")] == ["one@example.com"]

    await directory.delete(first.id)
    await directory.delete(42)
    assert [a.id for a in await directory.list()] == [2]


async def test_sql_repository_rejects_duplicate_email(db_session):
    directory = AdminDirectoryService(SqlAdminRepository(db_session))
    await directory.create(_new_admin("dup@example.com"))

    with pytest.raises(ValidationError, match="already exists"):
        await directory.create(_new_admin("dup@example.com"))


async def test_remote_repository_lists_only_admins(backend, make_client):
    backend.on(
        "GET",
        "/api/admin/users",
        {
            "users": [
                {"user_id": 3, "email": "boss@example.com", "userType": "Admin", "firstName": "Ada"},
                {"user_id": 4, "email": "user@example.com", "userType": "User"},
            ]
        },
    )
    repository = RemoteAdminRepository(make_client("t"))

    admins = await repository.list()

    assert [(a.id, a.email, a.first_name) for a in admins] == [(3, "boss@example.com", "Ada")]


async def test_remote_repository_create_posts_admin_account(backend, make_client):
    backend.on("POST", "/api/admin/users", {"user": {"user_id": 12, "email": "x@example.com"}})
    directory = AdminDirectoryService(RemoteAdminRepository(make_client("t")))

    admin = await directory.create(_new_admin("x@example.com", first_name="Xi"))

    assert admin.id == 12
    assert admin.first_name == "Xi"
    payload = backend.body(backend.calls[0])
    assert payload["accountType"] == "Admin"
    assert payload["password"] == "s3cret"


async def test_remote_repository_missing_user_is_none(backend, make_client):
    backend.on("PUT", "/api/admin/users/77", {"error": "User not found"}, status=404)
    backend.on("DELETE", "/api/admin/users/77", {"error": "User not found"}, status=404)
    repository = RemoteAdminRepository(make_client("t"))

    assert await repository.update(77, {"email": "a@example.com"}) is None
    await repository.delete(77)


async def test_create_treats_whitespace_as_part_of_the_password(directory, repository):
    before = len(repository)

    with pytest.raises(ValidationError, match="Passwords do not match."):
        await directory.create(_new_admin(password="secret ", confirm="secret"))

    assert len(repository) == before


async def test_password_with_surrounding_spaces_is_hashed_as_typed(directory, repository):
    admin = await directory.create(_new_admin("  spaced@example.com ", password=" pass phrase ", first_name=" Pat "))

    stored = repository.password_hash_for(admin.id)
    assert check_password_hash(stored, " pass phrase ")
    assert not check_password_hash(stored, "pass phrase")
    assert (admin.email, admin.first_name) == ("spaced@example.com", "Pat")


async def test_remote_repository_skips_records_without_numeric_ids(backend, make_client):
    backend.on(
        "GET",
        "/api/admin/users",
        {
            "users": [
                {"user_id": "a1b2c3d4-0000-4000-8000-1234567890ab", "email": "uuid@example.com", "userType": "Admin"},
                {"user_id": "42", "email": "text-id@example.com", "userType": "Admin"},
                {"user_id": 7, "email": "int-id@example.com", "accountType": "admin"},
            ]
        },
    )

    admins = await RemoteAdminRepository(make_client("t")).list()

    assert [(a.id, a.email) for a in admins] == [(42, "text-id@example.com"), (7, "int-id@example.com")]


async def test_remote_repository_stops_when_backend_repeats_a_page(backend, make_client):
    page = {
        "users": [
            {"user_id": 1, "email": "a@example.com", "userType": "Admin"},
            {"user_id": 2, "email": "b@example.com", "userType": "User"},
        ]
    }
    backend.on("GET", "/api/admin/users", page)
    repository = RemoteAdminRepository(make_client("t"))
    repository.page_size = 2

    admins = await repository.list()

    assert [a.id for a in admins] == [1]
    assert len(backend.calls) == 2


async def test_remote_repository_honours_total_pages(backend, make_client):
    backend.on(
        "GET",
        "/api/admin/users",
        lambda request: httpx.Response(
            200,
            json={
                "users": [{"user_id": int(request.url.params["page"]), "email": "p@example.com", "userType": "Admin"}],
                "totalPages": 3,
            },
        ),
    )
    repository = RemoteAdminRepository(make_client("t"))
    repository.page_size = 1

    admins = await repository.list()

    assert [a.id for a in admins] == [1, 2, 3]
    assert len(backend.calls) == 3


async def test_remote_repository_stops_on_empty_page(backend, make_client):
    backend.on("GET", "/api/admin/users", {"users": []})

    assert await RemoteAdminRepository(make_client("t")).list() == []
    assert len(backend.calls) == 1
