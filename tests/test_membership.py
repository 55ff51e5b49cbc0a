from datetime import datetime, timedelta

import pytest

from nivasa.db import commit
from nivasa.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from nivasa.models import Apartment, User
from nivasa.services import membership

from conftest import PASSWORD


def _raw_user(code, phone, flat, role="resident", created_at=None, username="u"):
    return User(
        username=username,
        phone_number=phone,
        flat_number=flat,
        hashed_password="not-a-hash",
        role=role,
        apartment_code=code,
        created_at=created_at or datetime.utcnow(),
    )


# ---------- register_apartment ----------

def test_register_apartment_generates_code(db):
    apt = membership.register_apartment(db, "Oak Towers")
    assert len(apt.apartment_code) == 4
    assert apt.apartment_code.isalnum()
    assert apt.apartment_code == apt.apartment_code.upper()
    assert apt.maintenance_amount == 0


@pytest.mark.parametrize("name", [None, "", "   "])
def test_register_apartment_requires_name(db, name):
    with pytest.raises(ValidationError):
        membership.register_apartment(db, name)


def test_register_apartment_code_collision_fails(db, monkeypatch):
    monkeypatch.setattr(membership, "generate_apartment_code", lambda length=None: "X7K2")
    membership.register_apartment(db, "Oak Towers")
    with pytest.raises(ConflictError, match="already exists"):
        membership.register_apartment(db, "Pine Court")

    apartments = db.query(Apartment).all()
    assert [a.name for a in apartments] == ["Oak Towers"]


def test_generate_apartment_code_alphabet():
    for _ in range(50):
        code = membership.generate_apartment_code()
        assert len(code) == 4
        assert set(code) <= set(membership.APARTMENT_CODE_ALPHABET)


# ---------- signup / login ----------

def test_signup_then_login_admin(db, apartment, admin):
    user = membership.login(db, "9000000001", PASSWORD)
    profile = membership.session_profile(user)
    assert profile["role"] == "admin"
    assert profile["apartmentCode"] == apartment.apartment_code
    assert profile["apartmentId"] == apartment.id
    assert profile["name"] == "Admin of Oak Towers"


def test_signup_then_login_resident(db, resident):
    profile = membership.session_profile(membership.login(db, "9000000002", PASSWORD))
    assert profile["role"] == "resident"
    assert profile["flatNumber"] == "101"
    assert profile["name"] == "Resident of Oak Towers"


def test_password_is_hashed(db, resident):
    assert resident.hashed_password != PASSWORD
    assert resident.hashed_password.startswith("$2")


def test_signup_invalid_code(db):
    with pytest.raises(ValidationError, match="Invalid apartment code"):
        membership.signup(db, "resident", "Ravi", "900", "101", PASSWORD, "NOPE")


def test_signup_missing_fields(db, apartment):
    with pytest.raises(ValidationError):
        membership.signup(db, "resident", "Ravi", "900", "", PASSWORD, apartment.apartment_code)


def test_signup_duplicate_phone_same_apartment(db, apartment, resident):
    with pytest.raises(ConflictError, match="User already exists"):
        membership.signup(db, "resident", "Other", "9000000002", "102", PASSWORD, apartment.apartment_code)


def test_same_phone_may_join_another_apartment(db, resident):
    other = membership.register_apartment(db, "Pine Court")
    user = membership.signup(db, "resident", "Ravi", "9000000002", "101", PASSWORD, other.apartment_code)
    assert user.apartment_code == other.apartment_code


def test_signup_duplicate_flat(db, apartment, resident):
    with pytest.raises(ConflictError, match="Flat number 101 is already registered"):
        membership.signup(db, "resident", "Other", "9000000099", "101", PASSWORD, apartment.apartment_code)


def test_flat_uniqueness_enforced_by_storage(db, apartment, resident):
    # bypass the service pre-check, as two concurrent signups would
    db.add(_raw_user(apartment.apartment_code, "9000000077", "101"))
    with pytest.raises(ConflictError):
        commit(db, "flat taken")
    assert db.query(User).filter(User.flat_number == "101").count() == 1


def test_login_unknown_phone(db, resident):
    with pytest.raises(ValidationError, match="User not found"):
        membership.login(db, "0000000000", PASSWORD)


def test_login_wrong_password(db, resident):
    with pytest.raises(UnauthorizedError):
        membership.login(db, "9000000002", "wrong")


def test_login_ambiguous_phone_uses_earliest_unless_scoped(db, resident):
    other = membership.register_apartment(db, "Pine Court")
    membership.signup(db, "resident", "Ravi", "9000000002", "7", PASSWORD, other.apartment_code)

    assert membership.login(db, "9000000002", PASSWORD).apartment_code == resident.apartment_code
    scoped = membership.login(db, "9000000002", PASSWORD, apartment_code=other.apartment_code)
    assert scoped.apartment_code == other.apartment_code


def test_validate(db, resident):
    assert membership.validate(db, resident.id).id == resident.id
    with pytest.raises(UnauthorizedError):
        membership.validate(db, resident.id, phone_number="1111111111")
    with pytest.raises(NotFoundError):
        membership.validate(db, "missing-id")


# ---------- single admin ----------

def test_second_admin_signup_is_demoted(db, apartment, admin):
    second = membership.signup(db, "admin", "Bo", "9000000003", "A-2", PASSWORD, apartment.apartment_code)
    assert second.role == "resident"
    db.refresh(admin)
    assert admin.role == "admin"


def test_list_neighbors_repairs_multiple_admins(db, apartment):
    code = apartment.apartment_code
    t0 = datetime(2024, 1, 1)
    db.add_all(
        [
            _raw_user(code, "1", "1", role="admin", created_at=t0),
            _raw_user(code, "2", "2", role="admin", created_at=t0 + timedelta(seconds=1)),
            _raw_user(code, "3", "3", role="admin", created_at=t0 + timedelta(seconds=2)),
            _raw_user(code, "4", "4", created_at=t0 + timedelta(seconds=3)),
        ]
    )
    db.commit()

    neighbors = membership.list_neighbors(db, code)
    admins = [u for u in neighbors if u.role == "admin"]
    assert len(neighbors) == 4
    assert [u.phone_number for u in admins] == ["1"]

    # idempotent
    assert membership.enforce_single_admin(db, code) == []
    again = membership.list_neighbors(db, code)
    assert [u.role for u in again] == ["admin", "resident", "resident", "resident"]


def test_list_neighbors_unknown_apartment(db):
    with pytest.raises(NotFoundError):
        membership.list_neighbors(db, "ZZZZ")


def test_list_neighbors_is_tenant_scoped(db, apartment, resident):
    other = membership.register_apartment(db, "Pine Court")
    membership.signup(db, "resident", "X", "9111111111", "1", PASSWORD, other.apartment_code)
    assert [u.id for u in membership.list_neighbors(db, apartment.apartment_code)] == [resident.id]


# ---------- update / delete ----------

def test_update_resident(db, apartment, resident):
    user = membership.update_resident(db, resident.id, "Ravi K", "9000000002", "102")
    assert (user.username, user.flat_number) == ("Ravi K", "102")


def test_update_resident_keeps_own_flat(db, resident):
    user = membership.update_resident(db, resident.id, "New Name", "9000000002", "101")
    assert user.username == "New Name"


def test_update_resident_flat_conflict(db, admin, resident):
    with pytest.raises(ConflictError, match="already registered by another resident"):
        membership.update_resident(db, resident.id, "Ravi", "9000000002", "A-1")


def test_update_resident_phone_conflict(db, admin, resident):
    with pytest.raises(ConflictError):
        membership.update_resident(db, resident.id, "Ravi", "9000000001", "101")


def test_update_resident_outside_scope(db, resident):
    with pytest.raises(NotFoundError):
        membership.update_resident(db, resident.id, "Ravi", "9000000002", "101", apartment_code="ZZZZ")


def test_update_resident_requires_fields(db, resident):
    with pytest.raises(ValidationError):
        membership.update_resident(db, resident.id, "", "9000000002", "101")


def test_delete_admin_forbidden(db, admin):
    with pytest.raises(ForbiddenError):
        membership.delete_resident(db, admin.id)
    assert db.query(User).filter(User.id == admin.id).count() == 1


def test_delete_resident(db, apartment, admin, resident):
    summary = membership.delete_resident(db, resident.id)
    assert summary["flatNumber"] == "101"
    ids = [u.id for u in membership.list_neighbors(db, apartment.apartment_code)]
    assert ids == [admin.id]


def test_delete_unknown_user(db):
    with pytest.raises(NotFoundError):
        membership.delete_resident(db, "nobody")


# ---------- flat availability ----------

def test_check_flat_availability(db, apartment, resident):
    code = apartment.apartment_code
    assert membership.check_flat_availability(db, "101", code)["isAvailable"] is False
    free = membership.check_flat_availability(db, "202", code)
    assert free["isAvailable"] is True
    assert free["message"] == "Flat number 202 is available"
    # read only
    assert db.query(User).count() == 1


def test_check_flat_availability_requires_inputs(db):
    with pytest.raises(ValidationError):
        membership.check_flat_availability(db, None, "ABCD")


# ---------- maintenance ----------

def test_backfill_usernames(db, apartment):
    db.add(_raw_user(apartment.apartment_code, "9876543210", "5", username=None))
    db.commit()

    report = membership.users_report(db)
    assert len(report["without_username"]) == 1

    updated = membership.backfill_usernames(db)
    assert [u.username for u in updated] == ["User_3210"]
    assert membership.users_report(db)["without_username"] == []
