import sqlite3
from datetime import datetime

import pytest

from breachcheck.database import (
    SEED_EMAILS,
    EmailService,
    init_database,
    seed_database,
)
from breachcheck.validation import hash_email


@pytest.fixture
def connection(tmp_path):
    conn = init_database(tmp_path / "emails.db")
    yield conn
    conn.close()


@pytest.fixture
def service(connection):
    return EmailService(connection)


def test_init_creates_table_in_wal_mode(connection):
    (mode,) = connection.execute("PRAGMA journal_mode").fetchone()
    assert mode == "wal"
    tables = {
        row[0]
        for row in connection.execute("SELECT name FROM sqlite_master WHERE type='table'")
    }
    assert "compromised_emails" in tables


def test_init_missing_directory_raises(tmp_path):
    with pytest.raises(sqlite3.OperationalError):
        init_database(tmp_path / "missing" / "emails.db")


def test_empty_database(service):
    assert service.compromised_email_count() == 0
    assert service.is_email_compromised(hash_email("user@example.com")) is False


def test_add_and_lookup(service):
    digest = hash_email("user@example.com")
    service.add_compromised_email(digest, datetime(2024, 1, 2, 3, 4, 5))
    assert service.is_email_compromised(digest) is True
    assert service.is_email_compromised(hash_email("other@example.com")) is False
    assert service.compromised_email_count() == 1


def test_duplicate_insert_is_ignored(service):
    digest = hash_email("user@example.com")
    service.add_compromised_email(digest, datetime(2024, 1, 2))
    service.add_compromised_email(digest, datetime(2024, 5, 6))
    assert service.compromised_email_count() == 1


def test_breach_date_is_stored(connection, service):
    digest = hash_email("user@example.com")
    service.add_compromised_email(digest, datetime(2024, 1, 2, 3, 4, 5))
    (stored,) = connection.execute(
        "SELECT breach_date FROM compromised_emails WHERE email_hash = ?", (digest,)
    ).fetchone()
    assert stored.startswith("2024-01-02 03:04:05")


def test_data_persists_across_reopen(tmp_path):
    path = tmp_path / "emails.db"
    conn = init_database(path)
    EmailService(conn).add_compromised_email(hash_email("user@example.com"), datetime(2024, 1, 2))
    conn.close()
    conn = init_database(path)
    try:
        assert EmailService(conn).compromised_email_count() == 1
    finally:
        conn.close()


def test_seed_database(service):
    seed_database(service)
    assert service.compromised_email_count() == len(set(SEED_EMAILS))
    assert service.is_email_compromised(hash_email("test@example.com")) is True
    for email in SEED_EMAILS:
        assert service.is_email_compromised(hash_email(email)) is True


def test_seed_twice_is_idempotent(service):
    seed_database(service)
    seed_database(service)
    assert service.compromised_email_count() == len(set(SEED_EMAILS))


def test_seed_on_closed_connection_reports_email(tmp_path):
    conn = init_database(tmp_path / "emails.db")
    service = EmailService(conn)
    conn.close()
    with pytest.raises(sqlite3.DatabaseError, match="failed to add test@example.com"):
        seed_database(service)


def test_count_on_closed_connection_raises(tmp_path):
    conn = init_database(tmp_path / "emails.db")
    service = EmailService(conn)
    conn.close()
    with pytest.raises(sqlite3.ProgrammingError):
        service.compromised_email_count()