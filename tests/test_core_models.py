import pytest

from provisioner.core.errors import (
    CompensationFailure,
    DeprovisionError,
    DuplicateIdentityError,
    MissingFieldsError,
    ProvisioningError,
    StoreWriteError,
    ValidationError,
)
from provisioner.core.models import BatchEntry, BatchReport, Failure, Role, Success, entry_value


class TestRole:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("administrator", Role.ADMINISTRATOR),
            ("admin", Role.ADMINISTRATOR),
            (" Teacher ", Role.TEACHER),
            ("PARENT", Role.PARENT),
        ],
    )
    def test_parse(self, raw, expected):
        assert Role.parse(raw) is expected

    @pytest.mark.parametrize("raw", ["student", "", None, 1])
    def test_parse_invalid(self, raw):
        assert Role.parse(raw) is None

    def test_storage_values(self):
        assert Role.ADMINISTRATOR.storage_value == "admin"
        assert Role.TEACHER.storage_value == "teacher"
        assert Role.PARENT.storage_value == "parent"


class TestBatchEntry:
    def test_from_dict_with_aliases(self):
        entry = BatchEntry.from_dict({
            "email": " ana@school.test ",
            "password": "pw",
            "full_name": "Ana",
            "username": "ana",
            "temp_student_name": "Leo",
        })
        assert entry.email == "ana@school.test"
        assert entry.secret == "pw"
        assert entry.handle == "ana"
        assert entry.temp_student_name == "Leo"

    def test_secret_not_in_repr(self):
        entry = BatchEntry.from_dict({"email": "a@x.test", "secret": "hunter2", "full_name": "A", "handle": "a"})
        assert "hunter2" not in repr(entry)

    def test_secret_is_kept_verbatim(self):
        entry = BatchEntry.from_dict({"email": " a@x.test ", "secret": "  pass phrase  ", "full_name": "A", "handle": "a"})
        assert entry.secret == "  pass phrase  "
        assert entry.email == "a@x.test"

    def test_entry_value_without_strip(self):
        assert entry_value({"password": " pw "}, "secret", strip=False) == " pw "
        assert entry_value({"password": "   "}, "secret", strip=False) == ""

    def test_entry_value_prefers_canonical_key(self):
        assert entry_value({"secret": "one", "password": "two"}, "secret") == "one"
        assert entry_value({"secret": " ", "password": "two"}, "secret") == "two"


class TestBatchReport:
    def test_empty_batch_is_not_overall_success(self):
        report = BatchReport(entry_count=0)
        assert report.overall_success is False
        assert report.to_dict()["successCount"] == 0

    def test_all_rows_created(self):
        report = BatchReport(entry_count=2)
        report.add(Success(1, "a@x.test", "id-1"))
        report.add(Success(2, "b@x.test", "id-2", temp_student_name="Kid"))
        assert report.overall_success is True
        data = report.to_dict()
        assert data["successes"] == [
            {"email": "a@x.test", "identifier": "id-1"},
            {"email": "b@x.test", "identifier": "id-2", "temp_student_name": "Kid"},
        ]
        assert data["failures"] == []

    def test_failure_messages_are_flattened(self):
        report = BatchReport(entry_count=2)
        report.add(Failure(1, "a@x.test", ["first", "rollback"]))
        report.add(Success(2, "b@x.test", "id-2"))
        assert report.failures == ["first", "rollback"]
        assert report.failed_rows == [1]
        assert report.overall_success is False

        outcomes = report.to_dict()["outcomes"]
        assert outcomes[0] == {"row": 1, "status": "failed", "email": "a@x.test", "messages": ["first", "rollback"]}
        assert outcomes[1] == {"row": 2, "status": "created", "email": "b@x.test", "identifier": "id-2"}


class TestErrors:
    def test_entry_messages_name_row_and_email(self):
        assert DuplicateIdentityError(2, "b@x.test").message == "(row 2: b@x.test) - email is already registered"
        error = StoreWriteError(3, "c@x.test", "profile", "boom")
        assert error.message == "(row 3: c@x.test) - failed to create profile: boom"

    def test_missing_fields_without_email(self):
        error = MissingFieldsError(4, None, ["email", "handle"])
        assert error.message == "row 4: required fields (email, handle) are missing or empty"

    def test_compensation_failure_flags_manual_cleanup(self):
        message = CompensationFailure(1, "a@x.test", "identity id-1", "down").message
        assert "rollback of identity id-1 failed: down" in message
        assert "manual cleanup required" in message

    def test_request_level_statuses(self):
        assert ValidationError("bad").status == 400
        assert ProvisioningError("oops").status == 500
        assert ProvisioningError("teapot", status=418).status == 418

    def test_deprovision_error_payload(self):
        error = DeprovisionError("profile", "Failed to delete profile: locked")
        assert error.to_dict() == {"ok": False, "error": "Failed to delete profile: locked", "store": "profile"}
