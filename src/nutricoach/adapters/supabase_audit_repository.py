"""Supabase repository for audit log rows."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutricoach.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

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
        """Insert an audit_logs row."""
        self.client.table("audit_logs").insert(
            {
                "action": action,
                "user_id": str(user_id) if user_id else None,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "metadata": metadata,
                "ip_address": ip_address,
                "user_agent": user_agent,
            }
        ).execute()
