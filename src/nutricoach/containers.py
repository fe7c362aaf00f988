"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import ClientOptions, create_client

from nutricoach.adapters.fdc_client import HttpxFdcClient
from nutricoach.adapters.openai_analysis_client import OpenAIAnalysisClient
from nutricoach.adapters.supabase_audit_repository import SupabaseAuditRepository
from nutricoach.adapters.supabase_auth_gateway import SupabaseAuthGateway
from nutricoach.adapters.supabase_meal_repository import SupabaseMealRepository
from nutricoach.adapters.supabase_security_repository import (
    SupabaseSecurityRepository,
)
from nutricoach.adapters.supabase_summary_repository import (
    SupabaseSummaryRepository,
)
from nutricoach.adapters.supabase_user_repository import SupabaseUserRepository
from nutricoach.config import Settings
from nutricoach.services.audit import AuditService
from nutricoach.services.auth import AuthService
from nutricoach.services.cache import InMemoryCache
from nutricoach.services.meals import MealService
from nutricoach.services.nutrition import NutritionService
from nutricoach.services.summaries import SummaryService
from nutricoach.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_service: AuthService
    user_service: UserService
    meal_service: MealService
    summary_service: SummaryService
    nutrition_service: NutritionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    auth_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_anon_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )

    meal_repository = SupabaseMealRepository(supabase_client)
    summary_service = SummaryService(
        repository=SupabaseSummaryRepository(supabase_client),
        meals=meal_repository,
    )
    meal_service = MealService(repository=meal_repository, summaries=summary_service)
    user_service = UserService(
        SupabaseUserRepository(supabase_client),
        default_timezone=resolved_settings.default_timezone,
    )
    auth_service = AuthService(
        gateway=SupabaseAuthGateway(client=auth_client, admin=supabase_client),
        security=SupabaseSecurityRepository(supabase_client),
        audit=AuditService(SupabaseAuditRepository(supabase_client)),
        max_failed_attempts=resolved_settings.login_max_failed_attempts,
        login_window_minutes=resolved_settings.login_window_minutes,
        max_signups=resolved_settings.signup_max_attempts,
        signup_window_minutes=resolved_settings.signup_window_minutes,
    )

    fdc_client = None
    if resolved_settings.fdc_api_key:
        fdc_client = HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key,
            base_url=resolved_settings.fdc_base_url,
        )
    analysis_client = None
    if resolved_settings.openai_api_key:
        analysis_client = OpenAIAnalysisClient.create(resolved_settings.openai_api_key)
    nutrition_service = NutritionService(
        cache=InMemoryCache(),
        fdc_client=fdc_client,
        analysis_client=analysis_client,
        analysis_model=resolved_settings.openai_model,
    )

    async def close_resources() -> None:
        if fdc_client is not None:
            await fdc_client.close()
        if analysis_client is not None:
            await analysis_client.close()

    return AppContainer(
        settings=resolved_settings,
        auth_service=auth_service,
        user_service=user_service,
        meal_service=meal_service,
        summary_service=summary_service,
        nutrition_service=nutrition_service,
        close_resources=close_resources,
    )
