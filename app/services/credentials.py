"""
Issuing and revoking project API keys.
"""

import logging
import secrets
from typing import Callable, Iterable, List, Set, Tuple

from app.core.errors import DuplicateKey, NotFound, ValidationError
from app.models.schemas import ApiKey, Project, new_id, utc_now

logger = logging.getLogger(__name__)

PERMISSIONS = {
    "anon": ["read"],
    "service_role": ["read", "write", "delete", "admin"],
}


def generate_key_string(key_type: str) -> str:
    """Opaque bearer token with 256 bits of randomness."""
    return f"{key_type}_{secrets.token_hex(32)}"


class CredentialManager:
    """Issues and revokes the API keys of a tenant's projects."""

    def __init__(
        self,
        existing_keys: Iterable[str] = (),
        generator: Callable[[str], str] = generate_key_string,
    ):
        """
        Initialize the credential manager.

        Args:
            existing_keys: Every key string already issued to the tenant,
                active or revoked
            generator: Produces a candidate key string for a key type
        """
        self._taken: Set[str] = set(existing_keys)
        self._generator = generator

    @classmethod
    def for_projects(cls, projects: List[Project]) -> "CredentialManager":
        return cls(api_key.key for project in projects for api_key in project.api_keys)

    def _reserve(self, candidate: str) -> str:
        if candidate in self._taken:
            raise DuplicateKey("Generated API key collides with an existing key")
        self._taken.add(candidate)
        return candidate

    def _new_key_string(self, key_type: str) -> str:
        while True:
            try:
                return self._reserve(self._generator(key_type))
            except DuplicateKey:
                logger.warning("API key collision detected, generating a new key")

    def issue(self, project: Project, name: str, key_type: str) -> ApiKey:
        """
        Issue a new active API key for a project.

        Args:
            project: Project the key is scoped to
            name: Human-readable label
            key_type: ``anon`` (read only) or ``service_role`` (full access)

        Returns:
            The stored API key
        """
        if not name or not name.strip():
            raise ValidationError("API key name must not be empty")
        if key_type not in PERMISSIONS:
            raise ValidationError(f"Unknown API key type {key_type}")

        api_key = ApiKey(
            id=new_id("key"),
            name=name.strip(),
            key=self._new_key_string(key_type),
            type=key_type,
            permissions=list(PERMISSIONS[key_type]),
            created_at=utc_now(),
        )
        project.api_keys.append(api_key)
        logger.info(f"Issued {key_type} key {api_key.id} for project {project.id}")
        return api_key

    def revoke(self, project: Project, key_id: str) -> ApiKey:
        """
        Deactivate a key. Revoking an already revoked key is a no-op.

        The key string stays on record so it can never be handed out again.
        """
        for api_key in project.api_keys:
            if api_key.id == key_id:
                if api_key.is_active:
                    api_key.is_active = False
                    logger.info(f"Revoked key {key_id} of project {project.id}")
                return api_key
        raise NotFound(f"API key {key_id} not found in project {project.id}")

    @staticmethod
    def authenticate(projects: List[Project], key: str) -> Tuple[Project, ApiKey]:
        """
        Resolve an active key string to its project and stamp ``last_used_at``.
        """
        for project in projects:
            for api_key in project.api_keys:
                if api_key.is_active and secrets.compare_digest(api_key.key.encode(), key.encode()):
                    api_key.last_used_at = utc_now()
                    return project, api_key
        raise NotFound("Invalid or revoked API key")
