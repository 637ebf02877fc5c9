"""Tests for UserService (staff roster, role sheets, context and role change handling)."""

import json

import pytest

from app.application.services.user_service import UserService, parse_staff_rows
from app.domain.exceptions import UserNotFoundException, ValidationException
from app.infrastructure.datasource.memory_source import InMemoryTableSource

# Staff sheet row index of a@x.com (header is row 0)
ADA_ROW = 1


class TestParseStaffRows:
    def test_defaults_and_normalization(self) -> None:
        rows = [
            ["Name", "Email", "Role", "Year"],
            ["<b>Ada</b>", " A@X.com ", "Wizard", "n/a"],
            ["Alan", "alan@x.com", "Counselor", "Probationary"],
            ["Bad", "not-an-email", "Teacher", 1],
            ["Short"],
        ]
        users = parse_staff_rows(rows)
        assert [u.email for u in users] == ["a@x.com", "alan@x.com"]
        ada, alan = users
        assert (ada.name, ada.role, ada.year, ada.row_number) == ("Ada", "Teacher", 1, 2)
        assert alan.year == 0

    def test_header_only(self) -> None:
        assert parse_staff_rows([["Name", "Email", "Role", "Year"]]) == []


class TestStaffData:
    async def test_cached_after_first_read(self, user_service: UserService, data_source, staff_sheet) -> None:
        users = await user_service.get_staff_data()
        assert len(users) == 3
        data_source.set_sheet("Staff", staff_sheet[:2])
        assert len(await user_service.get_staff_data()) == 3

    async def test_refresh_rereads(self, user_service: UserService, data_source, staff_sheet) -> None:
        await user_service.get_staff_data()
        data_source.set_sheet("Staff", staff_sheet[:2])
        assert len(await user_service.refresh_staff_data()) == 1
        assert len(await user_service.get_staff_data()) == 1

    async def test_changed_roster_invalidates_user_entries(self, user_service, versioning, data_source) -> None:
        await user_service.get_user_by_email("a@x.com")
        before = await versioning.current_version()
        await user_service.refresh_staff_data()
        assert await versioning.current_version() == before

        data_source.update_cell("Staff", ADA_ROW, 2, "Nurse")
        await user_service.refresh_staff_data()
        assert await versioning.current_version() != before
        assert (await user_service.get_user_by_email("a@x.com")).role == "Nurse"

    async def test_missing_sheet(self, versioned_cache, hash_detector, invalidation, state_detector, sessions, settings) -> None:
        service = UserService(
            InMemoryTableSource(), versioned_cache, hash_detector, invalidation, state_detector, sessions, settings
        )
        assert await service.get_staff_data() is None
        assert await service.get_user_by_email("a@x.com") is None


class TestGetUserByEmail:
    async def test_case_insensitive(self, user_service: UserService) -> None:
        user = await user_service.get_user_by_email("GRACE@x.com ")
        assert user.email == "grace@x.com"
        assert user.role == "Administrator"
        assert user.year == 2

    @pytest.mark.parametrize("email", ["nobody@x.com", "not-an-email", ""])
    async def test_unknown_or_invalid(self, user_service: UserService, email: str) -> None:
        assert await user_service.get_user_by_email(email) is None

    async def test_cached_under_user_key(self, user_service: UserService, versioned_cache) -> None:
        await user_service.get_user_by_email("a@x.com")
        cached = await versioned_cache.get("user", {"email": "a@x.com"})
        assert cached["role"] == "Teacher"


class TestRoleSheet:
    async def test_cached_per_role(self, user_service: UserService, data_source) -> None:
        rows = await user_service.get_role_sheet("Administrator")
        assert rows[1][1] == "Leadership"
        data_source.set_sheet("Administrator", [["changed"]])
        assert await user_service.get_role_sheet("Administrator") == rows

    async def test_unknown_role_reads_default(self, user_service: UserService) -> None:
        assert (await user_service.get_role_sheet("Wizard"))[1][1] == "Knowledge of content"

    async def test_missing_sheet(self, user_service: UserService) -> None:
        assert await user_service.get_role_sheet("Counselor") is None


class TestBuildUserContext:
    async def test_first_visit_is_new_user(self, user_service: UserService) -> None:
        context = await user_service.build_user_context("a@x.com")
        assert context.is_new_user is True
        assert context.role_change_detected is False
        assert context.has_special_access is False
        assert context.session_id.startswith("session_")

    async def test_session_id_passed_through(self, user_service: UserService) -> None:
        context = await user_service.build_user_context("a@x.com", session_id="abc")
        assert context.session_id == "abc"

    async def test_stored_session_reused_across_requests(self, user_service: UserService, property_store) -> None:
        first = await user_service.build_user_context("a@x.com")
        second = await user_service.build_user_context("a@x.com")

        assert second.session_id == first.session_id
        assert second.session_access_count == 2
        snapshot = json.loads(await property_store.get("user_state_a@x.com"))
        assert snapshot["session_id"] == first.session_id

    async def test_expired_session_renewed(self, user_service: UserService, sessions) -> None:
        first = await user_service.build_user_context("a@x.com")
        stale = await sessions.get_session("a@x.com")
        await sessions.create_session("a@x.com", now=stale.created_at - 2 * 3600 * 1000)

        renewed = await user_service.build_user_context("a@x.com")

        assert renewed.session_id != first.session_id
        assert renewed.session_access_count == 1
        assert renewed.session_expires_at > stale.created_at

    async def test_unknown_user(self, user_service: UserService) -> None:
        with pytest.raises(UserNotFoundException):
            await user_service.build_user_context("nobody@x.com")

    async def test_invalid_email(self, user_service: UserService) -> None:
        with pytest.raises(ValidationException):
            await user_service.build_user_context("not-an-email")

    async def test_role_change_end_to_end(self, user_service: UserService, data_source, versioned_cache) -> None:
        first = await user_service.build_user_context("a@x.com")
        assert first.role == "Teacher"
        await user_service.get_role_sheet("Teacher")

        data_source.update_cell("Staff", ADA_ROW, 2, "Administrator")
        await user_service.refresh_staff_data()
        context = await user_service.build_user_context("a@x.com")

        assert context.role == "Administrator"
        assert context.role_change_detected is True
        assert context.has_special_access is True
        assert context.is_new_user is False
        history = await user_service.get_role_history("a@x.com")
        assert [(h.old_role, h.new_role) for h in history] == [("Teacher", "Administrator")]
        assert await versioned_cache.get("role_sheet", {"role": "Teacher"}) is None
        assert await versioned_cache.get("user", {"email": "a@x.com"}) is None

        again = await user_service.build_user_context("a@x.com")
        assert again.role_change_detected is False

    async def test_year_only_change(self, user_service: UserService, data_source, versioned_cache) -> None:
        await user_service.build_user_context("a@x.com")
        data_source.update_cell("Staff", ADA_ROW, 3, 2)
        await user_service.refresh_staff_data()

        context = await user_service.build_user_context("a@x.com")

        assert context.year == 2
        assert context.role_change_detected is False
        assert [c.field for c in context.state_changes] == ["year"]
        assert await versioned_cache.get("user", {"email": "a@x.com"}) is None
        assert await user_service.get_role_history("a@x.com") == []


class TestClearUserCaches:
    async def test_known_user_targeted(self, user_service: UserService, versioning, versioned_cache) -> None:
        await user_service.get_user_by_email("a@x.com")
        before = await versioning.current_version()
        assert await user_service.clear_user_caches("a@x.com") is True
        assert await versioning.current_version() == before
        assert await versioned_cache.get("user", {"email": "a@x.com"}) is None

    async def test_unknown_user_force_cleans(self, user_service: UserService, versioning) -> None:
        before = await versioning.current_version()
        assert await user_service.clear_user_caches("nobody@x.com") is False
        assert await versioning.current_version() != before


class TestRoleChangeSweep:
    async def test_sweep_detects_role_changes(self, user_service: UserService, data_source) -> None:
        first = await user_service.check_all_users_for_role_changes()
        assert (first.total_users, first.users_checked, first.changes_detected) == (3, 3, 0)

        data_source.update_cell("Staff", 3, 2, "Administrator")
        second = await user_service.check_all_users_for_role_changes()

        assert second.changes_detected == 1
        assert second.role_changes == [
            {"email": "alan@x.com", "old_role": "Counselor", "new_role": "Administrator"}
        ]
        assert len(await user_service.get_role_history("alan@x.com")) == 1

    async def test_sweep_without_roster(
        self, versioned_cache, hash_detector, invalidation, state_detector, sessions, settings
    ) -> None:
        service = UserService(
            InMemoryTableSource(), versioned_cache, hash_detector, invalidation, state_detector, sessions, settings
        )
        result = await service.check_all_users_for_role_changes()
        assert result.total_users == 0
        assert result.errors
