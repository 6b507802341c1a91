import pytest
from unittest.mock import MagicMock

from app.core.errors import NotFound, ValidationError
from app.models.schemas import Project, utc_now
from app.services.credentials import PERMISSIONS, CredentialManager, generate_key_string
from app.services.project_registry import build_endpoints, default_auth_config, default_storage_config


def make_project(project_id="proj_test"):
    now = utc_now()
    return Project(
        id=project_id,
        user_id="user_test",
        name="Test",
        region="us-east-1",
        created_at=now,
        updated_at=now,
        auth_config=default_auth_config(),
        storage_config=default_storage_config(),
        **build_endpoints(project_id),
    )


def test_generate_key_string_format():
    key = generate_key_string("anon")
    assert key.startswith("anon_")
    assert len(key) == len("anon_") + 64
    assert key != generate_key_string("anon")


class TestIssue:
    """Issuing keys"""

    @pytest.mark.parametrize("key_type", ["anon", "service_role"])
    def test_issue_sets_permissions(self, key_type):
        project = make_project()
        api_key = CredentialManager().issue(project, "My Key", key_type)

        assert api_key.type == key_type
        assert api_key.permissions == PERMISSIONS[key_type]
        assert api_key.is_active is True
        assert api_key.last_used_at is None
        assert api_key.key.startswith(f"{key_type}_")
        assert project.api_keys == [api_key]

    def test_anon_is_read_only(self):
        api_key = CredentialManager().issue(make_project(), "Public", "anon")
        assert api_key.permissions == ["read"]

    def test_issue_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            CredentialManager().issue(make_project(), "  ", "anon")

    def test_issue_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            CredentialManager().issue(make_project(), "Key", "root")

    def test_collision_is_regenerated(self):
        generator = MagicMock(side_effect=["anon_taken", "anon_fresh"])
        manager = CredentialManager(existing_keys=["anon_taken"], generator=generator)

        api_key = manager.issue(make_project(), "Key", "anon")

        assert api_key.key == "anon_fresh"
        assert generator.call_count == 2

    def test_revoked_keys_stay_reserved(self):
        first = make_project("proj_a")
        api_key = CredentialManager().issue(first, "Key", "anon")
        CredentialManager().revoke(first, api_key.id)

        generator = MagicMock(side_effect=[api_key.key, "anon_other"])
        manager = CredentialManager.for_projects([first])
        manager._generator = generator

        assert manager.issue(make_project("proj_b"), "Key", "anon").key == "anon_other"


class TestRevoke:
    """Revoking keys"""

    def test_revoke_keeps_key_string(self):
        project = make_project()
        manager = CredentialManager()
        api_key = manager.issue(project, "Key", "service_role")
        original = api_key.key

        revoked = manager.revoke(project, api_key.id)

        assert revoked.is_active is False
        assert revoked.key == original
        assert len(project.api_keys) == 1

    def test_revoke_is_idempotent(self):
        project = make_project()
        manager = CredentialManager()
        api_key = manager.issue(project, "Key", "anon")

        manager.revoke(project, api_key.id)
        again = manager.revoke(project, api_key.id)

        assert again.is_active is False

    def test_revoke_unknown_key(self):
        with pytest.raises(NotFound):
            CredentialManager().revoke(make_project(), "key_missing")


class TestAuthenticate:
    """Resolving key strings"""

    def test_authenticate_stamps_last_used(self):
        project = make_project()
        api_key = CredentialManager().issue(project, "Key", "anon")

        found_project, found_key = CredentialManager.authenticate([project], api_key.key)

        assert found_project is project
        assert found_key is api_key
        assert found_key.last_used_at is not None

    def test_authenticate_rejects_revoked_key(self):
        project = make_project()
        manager = CredentialManager()
        api_key = manager.issue(project, "Key", "anon")
        manager.revoke(project, api_key.id)

        with pytest.raises(NotFound):
            CredentialManager.authenticate([project], api_key.key)

    def test_authenticate_rejects_unknown_key(self):
        with pytest.raises(NotFound):
            CredentialManager.authenticate([make_project()], "anon_nope")
