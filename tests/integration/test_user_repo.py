from pathlib import Path
from uuid import uuid4

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteUserRepo
from src.domain.entities import User

MIGRATIONS_DIR = str(Path(__file__).resolve().parents[2] / "migrations")


@pytest.fixture
def repo(tmp_path):
    db_path = str(tmp_path / "users.db")
    SQLiteMigrator(db_path, MIGRATIONS_DIR).run_migrations()
    return SQLiteUserRepo(db_path)


def test_save_and_fetch_with_roles(repo):
    uid = uuid4()
    repo.save(
        User(
            id=uid,
            email="Staff@Example.com",
            display_name="Staff",
            password_hash="hashed",
            roles=["support", "editor"],
        )
    )

    fetched = repo.get_by_id(uid)
    assert fetched is not None
    assert fetched.email == "staff@example.com"
    assert sorted(fetched.roles) == ["editor", "support"]

    by_email = repo.get_by_email("STAFF@example.com")
    assert by_email is not None and by_email.id == uid


def test_missing_user(repo):
    assert repo.get_by_id(uuid4()) is None
    assert repo.get_by_email("missing@example.com") is None


def test_resave_replaces_roles(repo):
    user = User(email="ops@example.com", display_name="Ops", password_hash="h", roles=["support"])
    repo.save(user)

    user.display_name = "Operations"
    user.roles = ["admin"]
    repo.save(user)

    fetched = repo.get_by_id(user.id)
    assert fetched is not None
    assert fetched.display_name == "Operations"
    assert fetched.roles == ["admin"]
    assert len(repo.list_all()) == 1
