"""Audit logging service."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutricoach.domain.auth import ClientInfo


class AuditRepository(Protocol):
    """Persistence interface for audit log rows."""

    def create_entry(  # noqa: PLR0913
        self,
        action: str,
        user_id: UUID | None,
        entity_type: str | None,
        entity_id: str | None,
        metadata: dict[str, object] | None,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        """Insert an audit log row."""


@dataclass
class AuditService:
    """Service for recording security-relevant events."""

    repository: AuditRepository

    def record(  # noqa: PLR0913
        self,
        action: str,
        *,
        user_id: UUID | None = None,
        entity_type: str | None = None,
        entity_id: str | None = None,
        metadata: dict[str, object] | None = None,
        client: ClientInfo | None = None,
    ) -> None:
        """Persist an audit entry."""
        self.repository.create_entry(
            action=action,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
            ip_address=client.ip_address if client else None,
            user_agent=client.user_agent if client else None,
        )
