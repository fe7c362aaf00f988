"""Supabase repository for login attempts and device fingerprints."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutricoach.domain.auth import ClientInfo
from nutricoach.services.auth import SIGN_UP_ATTEMPT, SecurityRepository


@dataclass
class SupabaseSecurityRepository(SecurityRepository):
    """Supabase implementation backing sign-in rate limits."""

    client: Client

    def count_failed_attempts(self, email: str, since: datetime) -> int:
        """Return failed attempts for an email since a moment."""
        response = (
            self.client.table("login_attempts")
            .select("id", count="exact")
            .eq("email", email)
            .eq("success", False)
            .gte("attempted_at", since.isoformat())
            .execute()
        )
        return response.count or 0

    def count_signup_attempts(self, ip_address: str, since: datetime) -> int:
        """Return sign-up attempts audited for an address since a moment."""
        response = (
            self.client.table("audit_logs")
            .select("id", count="exact")
            .eq("action", SIGN_UP_ATTEMPT)
            .eq("ip_address", ip_address)
            .gte("created_at", since.isoformat())
            .execute()
        )
        return response.count or 0

    def record_login_attempt(
        self, email: str, client: ClientInfo, success: bool
    ) -> None:
        """Insert a login_attempts row."""
        self.client.table("login_attempts").insert(
            {
                "email": email,
                "ip_address": client.ip_address,
                "user_agent": client.user_agent,
                "success": success,
            }
        ).execute()

    def touch_device(
        self,
        user_id: UUID,
        fingerprint: str,
        device_name: str,
        device_type: str,
    ) -> None:
        """Create the fingerprint or refresh its last_seen_at."""
        self.client.table("device_fingerprints").upsert(
            {
                "user_id": str(user_id),
                "fingerprint": fingerprint,
                "device_name": device_name,
                "device_type": device_type,
                "last_seen_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id,fingerprint",
        ).execute()
