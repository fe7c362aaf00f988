"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from nutricoach.adapters.fdc_client import FdcClient
from nutricoach.config import Settings
from nutricoach.containers import AppContainer
from nutricoach.domain.auth import AuthSession, AuthUser, ClientInfo, SignInResult
from nutricoach.domain.meals import (
    FoodItemDraft,
    FoodItemRecord,
    MealDraft,
    MealFilters,
    MealRecord,
)
from nutricoach.domain.nutrients import NutrientTotals
from nutricoach.domain.summaries import DailySummary
from nutricoach.domain.users import (
    Goal,
    GoalDraft,
    UserAccount,
    UserProfile,
    WeightEntry,
)
from nutricoach.errors import BadRequestError
from nutricoach.services.audit import AuditRepository, AuditService
from nutricoach.services.auth import (
    SIGN_UP_ATTEMPT,
    AuthGateway,
    AuthService,
    SecurityRepository,
)
from nutricoach.services.cache import InMemoryCache
from nutricoach.services.meals import MealRepository, MealService
from nutricoach.services.nutrition import AnalysisClient, NutritionService
from nutricoach.services.summaries import SummaryRepository, SummaryService
from nutricoach.services.users import UserRepository, UserService

TEST_TOKEN = "test-token"


def _item_record(meal_id: UUID, item: FoodItemDraft) -> FoodItemRecord:
    return FoodItemRecord(
        id=uuid4(),
        meal_id=meal_id,
        name=item.name,
        brand=item.brand,
        quantity=item.quantity,
        unit=item.unit,
        nutrients=item.nutrients,
    )


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository; items live inside their meal row."""

    meals: dict[UUID, MealRecord] = field(default_factory=dict)
    fail_item_writes: bool = False

    def create_meal(
        self, user_id: UUID, draft: MealDraft, totals: NutrientTotals
    ) -> UUID:
        meal_id = uuid4()
        if self.fail_item_writes and draft.food_items:
            raise RuntimeError("food item insert failed")
        self.meals[meal_id] = MealRecord(
            id=meal_id,
            user_id=user_id,
            name=draft.name,
            description=draft.description,
            type=draft.type,
            logged_at=draft.logged_at,
            ai_parsed=draft.ai_parsed,
            totals=totals,
            food_items=[_item_record(meal_id, item) for item in draft.food_items],
        )
        return meal_id

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord | None:
        meal = self.meals.get(meal_id)
        if meal is None or meal.user_id != user_id:
            return None
        return meal

    def list_meals(
        self, user_id: UUID, filters: MealFilters, limit: int, offset: int
    ) -> list[MealRecord]:
        rows = [
            meal
            for meal in self.meals.values()
            if meal.user_id == user_id
            and (filters.start is None or meal.logged_at >= filters.start)
            and (filters.end is None or meal.logged_at < filters.end)
            and (filters.type is None or meal.type == filters.type)
        ]
        rows.sort(key=lambda meal: meal.logged_at, reverse=True)
        return rows[offset : offset + limit]

    def search_meals(self, user_id: UUID, query: str, limit: int) -> list[MealRecord]:
        rows = [
            meal
            for meal in self.meals.values()
            if meal.user_id == user_id and query.lower() in meal.name.lower()
        ]
        rows.sort(key=lambda meal: meal.logged_at, reverse=True)
        return rows[:limit]

    def update_meal(
        self,
        meal_id: UUID,
        fields: dict[str, object],
        totals: NutrientTotals | None,
        items: list[FoodItemDraft] | None,
    ) -> None:
        if self.fail_item_writes and items is not None:
            raise RuntimeError("food item insert failed")
        meal = replace(self.meals[meal_id], **fields)
        if totals is not None:
            meal = replace(meal, totals=totals)
        if items is not None:
            meal = replace(
                meal, food_items=[_item_record(meal_id, item) for item in items]
            )
        self.meals[meal_id] = meal

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        meal = self.meals.get(meal_id)
        if meal is not None and meal.user_id == user_id:
            del self.meals[meal_id]

    def list_meal_totals(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[NutrientTotals]:
        return [
            meal.totals
            for meal in self.meals.values()
            if meal.user_id == user_id and start <= meal.logged_at < end
        ]

    def food_item_rows(self) -> list[FoodItemRecord]:
        return [item for meal in self.meals.values() for item in meal.food_items]

    def remove_user(self, user_id: UUID) -> None:
        for meal_id in [m.id for m in self.meals.values() if m.user_id == user_id]:
            del self.meals[meal_id]


@dataclass
class InMemorySummaryRepository(SummaryRepository):
    """In-memory summaries keyed by (user_id, date)."""

    rows: dict[tuple[UUID, date], DailySummary] = field(default_factory=dict)
    upserts: int = 0

    def get_summary(self, user_id: UUID, day: date) -> DailySummary | None:
        return self.rows.get((user_id, day))

    def list_summaries(
        self,
        user_id: UUID,
        start: date | None,
        end: date | None,
        limit: int,
        offset: int,
    ) -> list[DailySummary]:
        rows = [
            row
            for (owner, day), row in self.rows.items()
            if owner == user_id
            and (start is None or day >= start)
            and (end is None or day <= end)
        ]
        rows.sort(key=lambda row: row.date, reverse=True)
        return rows[offset : offset + limit]

    def list_summaries_between(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailySummary]:
        rows = [
            row
            for (owner, day), row in self.rows.items()
            if owner == user_id and start <= day <= end
        ]
        return sorted(rows, key=lambda row: row.date)

    def upsert_summary(  # noqa: PLR0913
        self,
        user_id: UUID,
        day: date,
        totals: NutrientTotals,
        meal_count: int,
        summary: str | None,
    ) -> UUID:
        self.upserts += 1
        existing = self.rows.get((user_id, day))
        if existing is None:
            row = DailySummary(
                id=uuid4(),
                user_id=user_id,
                date=day,
                totals=totals,
                meal_count=meal_count,
                summary=summary,
                created_at=datetime.now(tz=UTC),
            )
        else:
            row = replace(
                existing,
                totals=totals,
                meal_count=meal_count,
                summary=summary if summary is not None else existing.summary,
            )
        self.rows[(user_id, day)] = row
        return row.id

    def update_summary_text(self, summary_id: UUID, summary: str) -> None:
        for key, row in self.rows.items():
            if row.id == summary_id:
                self.rows[key] = replace(row, summary=summary)

    def delete_summary(self, summary_id: UUID) -> None:
        for key, row in list(self.rows.items()):
            if row.id == summary_id:
                del self.rows[key]

    def remove_user(self, user_id: UUID) -> None:
        for key in [key for key in self.rows if key[0] == user_id]:
            del self.rows[key]


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user, profile, goal and weight repository for tests."""

    accounts: dict[UUID, UserAccount] = field(default_factory=dict)
    profiles: dict[UUID, UserProfile] = field(default_factory=dict)
    goals: list[Goal] = field(default_factory=list)
    weights: list[WeightEntry] = field(default_factory=list)

    def get_user(self, user_id: UUID) -> UserAccount | None:
        return self.accounts.get(user_id)

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.profiles.get(user_id)

    def update_user_name(self, user_id: UUID, name: str) -> None:
        self.accounts[user_id] = replace(self.accounts[user_id], name=name)

    def upsert_profile(self, user_id: UUID, values: dict[str, object]) -> None:
        current = self.profiles.get(user_id) or UserProfile(
            id=uuid4(),
            user_id=user_id,
            age=None,
            gender=None,
            height=None,
            weight=None,
            activity_level=None,
            dietary_restrictions=None,
            timezone="UTC",
            locale="en",
            onboarding_completed=False,
        )
        self.profiles[user_id] = replace(current, **values)

    def list_active_goals(self, user_id: UUID) -> list[Goal]:
        active = [g for g in self.goals if g.user_id == user_id and g.active]
        return sorted(active, key=lambda goal: goal.created_at, reverse=True)

    def activate_goal(self, user_id: UUID, draft: GoalDraft) -> UUID:
        self.goals = [
            replace(goal, active=False) if goal.user_id == user_id else goal
            for goal in self.goals
        ]
        goal = Goal(
            id=uuid4(),
            user_id=user_id,
            type=draft.type,
            target_weight=draft.target_weight,
            target_date=draft.target_date,
            daily_calories=draft.daily_calories,
            daily_protein=draft.daily_protein,
            daily_carbs=draft.daily_carbs,
            daily_fat=draft.daily_fat,
            active=True,
            created_at=datetime(2026, 1, 1, tzinfo=UTC)
            + timedelta(seconds=len(self.goals)),
        )
        self.goals.append(goal)
        return goal.id

    def create_weight_entry(
        self, user_id: UUID, weight: float, notes: str | None, logged_at: datetime
    ) -> UUID:
        entry = WeightEntry(
            id=uuid4(), user_id=user_id, weight=weight, logged_at=logged_at, notes=notes
        )
        self.weights.append(entry)
        return entry.id

    def list_weight_entries(
        self,
        user_id: UUID,
        start: datetime | None,
        end: datetime | None,
        limit: int,
    ) -> list[WeightEntry]:
        rows = [
            entry
            for entry in self.weights
            if entry.user_id == user_id
            and (start is None or entry.logged_at >= start)
            and (end is None or entry.logged_at < end)
        ]
        rows.sort(key=lambda entry: entry.logged_at, reverse=True)
        return rows[:limit]

    def email_exists(self, email: str) -> bool:
        return any(account.email == email for account in self.accounts.values())

    def remove_user(self, user_id: UUID) -> None:
        self.accounts.pop(user_id, None)
        self.profiles.pop(user_id, None)
        self.goals = [goal for goal in self.goals if goal.user_id != user_id]
        self.weights = [entry for entry in self.weights if entry.user_id != user_id]


@dataclass
class InMemoryAuditRepository(AuditRepository):
    """In-memory audit repository for tests."""

    entries: list[dict[str, object]] = field(default_factory=list)

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
        self.entries.append(
            {
                "action": action,
                "user_id": user_id,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "metadata": metadata,
                "ip_address": ip_address,
                "user_agent": user_agent,
                "created_at": datetime.now(tz=UTC),
            }
        )

    def actions(self) -> list[str]:
        return [str(entry["action"]) for entry in self.entries]


@dataclass
class InMemorySecurityRepository(SecurityRepository):
    """In-memory login attempts and devices; sign-ups are read from the audit log."""

    audit: InMemoryAuditRepository
    attempts: list[dict[str, object]] = field(default_factory=list)
    devices: dict[tuple[UUID, str], dict[str, object]] = field(default_factory=dict)

    def count_failed_attempts(self, email: str, since: datetime) -> int:
        return sum(
            1
            for attempt in self.attempts
            if attempt["email"] == email
            and not attempt["success"]
            and attempt["attempted_at"] >= since
        )

    def count_signup_attempts(self, ip_address: str, since: datetime) -> int:
        return sum(
            1
            for entry in self.audit.entries
            if entry["action"] == SIGN_UP_ATTEMPT
            and entry["ip_address"] == ip_address
            and entry["created_at"] >= since
        )

    def record_login_attempt(
        self, email: str, client: ClientInfo, success: bool
    ) -> None:
        self.attempts.append(
            {
                "email": email,
                "ip_address": client.ip_address,
                "success": success,
                "attempted_at": datetime.now(tz=UTC),
            }
        )

    def touch_device(
        self,
        user_id: UUID,
        fingerprint: str,
        device_name: str,
        device_type: str,
    ) -> None:
        self.devices[(user_id, fingerprint)] = {
            "device_name": device_name,
            "device_type": device_type,
            "last_seen_at": datetime.now(tz=UTC),
        }


@dataclass
class FakeAuthGateway(AuthGateway):
    """Fake auth service with opaque tokens and plain-text credentials."""

    tokens: dict[str, AuthUser] = field(default_factory=dict)
    credentials: dict[str, tuple[str, AuthUser]] = field(default_factory=dict)
    require_verification: bool = False
    revoked: list[str] = field(default_factory=list)
    deleted: list[UUID] = field(default_factory=list)
    on_delete: list = field(default_factory=list)

    def get_user(self, access_token: str) -> AuthUser | None:
        return self.tokens.get(access_token)

    def sign_up(self, email: str, password: str, name: str) -> SignInResult:
        if email in self.credentials:
            if self.require_verification:
                placeholder = AuthUser(id=uuid4(), email=email, name=name)
                return SignInResult(user=placeholder, session=None)
            raise BadRequestError("User already registered")
        user = AuthUser(
            id=uuid4(),
            email=email,
            name=name,
            email_verified=not self.require_verification,
        )
        self.credentials[email] = (password, user)
        if self.require_verification:
            return SignInResult(user=user, session=None)
        return SignInResult(user=user, session=self._issue(user))

    def sign_in(self, email: str, password: str) -> SignInResult | None:
        entry = self.credentials.get(email)
        if entry is None or entry[0] != password:
            return None
        user = entry[1]
        if not user.email_verified:
            return SignInResult(user=user, session=None)
        return SignInResult(user=user, session=self._issue(user))

    def sign_out(self, access_token: str) -> None:
        self.revoked.append(access_token)
        self.tokens.pop(access_token, None)

    def delete_user(self, user_id: UUID) -> None:
        self.deleted.append(user_id)
        self.tokens = {
            token: user for token, user in self.tokens.items() if user.id != user_id
        }
        for hook in self.on_delete:
            hook(user_id)

    def _issue(self, user: AuthUser) -> AuthSession:
        token = f"token-{uuid4().hex}"
        self.tokens[token] = user
        return AuthSession(
            user=user,
            access_token=token,
            expires_at=datetime.now(tz=UTC) + timedelta(hours=1),
        )


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client with canned responses."""

    search_calls: int = 0
    food_calls: int = 0
    failures: int = 0

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        self.search_calls += 1
        if self.failures:
            self.failures -= 1
            raise RuntimeError("FDC unavailable")
        return {
            "totalHits": 1,
            "foods": [
                {
                    "fdcId": 171077,
                    "description": "Chicken, broilers or fryers, breast, meat only",
                    "dataType": "SR Legacy",
                    "foodNutrients": [
                        {"nutrientId": 1008, "value": 120},
                        {"nutrientId": 1003, "value": 22.5},
                        {"nutrientId": 1004, "value": 2.62},
                        {"nutrientId": 1005, "value": 0},
                        {"nutrientId": 1093, "value": 45},
                    ],
                }
            ],
        }

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.food_calls += 1
        return {
            "fdcId": fdc_id,
            "description": "Kirkland Signature Chicken Breast",
            "brandOwner": "Costco",
            "brandName": "Kirkland",
            "servingSize": 112,
            "servingSizeUnit": "G",
            "foodNutrients": [
                {"nutrient": {"id": 1008}, "amount": 165},
                {"nutrient": {"id": 1003}, "amount": 31},
                {"nutrient": {"id": 1004}, "amount": 3.6},
                {"nutrient": {"id": 1005}, "amount": 0},
            ],
        }


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake LLM client returning a fixed extraction."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "items": [
                {
                    "name": "Oatmeal",
                    "quantity": 1,
                    "unit": "cup",
                    "calories": 150,
                    "protein": 5,
                    "carbs": 27,
                    "fat": 3,
                },
                {
                    "name": "Banana",
                    "quantity": 1,
                    "unit": "medium",
                    "calories": 105,
                    "protein": 1.3,
                    "carbs": 27,
                    "fat": 0.4,
                },
            ]
        }
    )
    prompts: list[str] = field(default_factory=list)

    async def extract(
        self,
        *,
        model: str,
        text: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.prompts.append(prompt)
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service.key.signature",
        supabase_anon_key="anon.key.signature",
        default_timezone="UTC",
    )


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def summary_repository() -> InMemorySummaryRepository:
    return InMemorySummaryRepository()


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def audit_repository() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def auth_gateway() -> FakeAuthGateway:
    return FakeAuthGateway()


@pytest.fixture
def summary_service(
    summary_repository: InMemorySummaryRepository,
    meal_repository: InMemoryMealRepository,
) -> SummaryService:
    return SummaryService(repository=summary_repository, meals=meal_repository)


@pytest.fixture
def meal_service(
    meal_repository: InMemoryMealRepository, summary_service: SummaryService
) -> MealService:
    return MealService(repository=meal_repository, summaries=summary_service)


@pytest.fixture
def auth_service(
    auth_gateway: FakeAuthGateway, audit_repository: InMemoryAuditRepository
) -> AuthService:
    return AuthService(
        gateway=auth_gateway,
        security=InMemorySecurityRepository(audit_repository),
        audit=AuditService(audit_repository),
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    meal_service: MealService,
    summary_service: SummaryService,
    auth_service: AuthService,
    auth_gateway: FakeAuthGateway,
    user_repository: InMemoryUserRepository,
    meal_repository: InMemoryMealRepository,
    summary_repository: InMemorySummaryRepository,
) -> AppContainer:
    auth_gateway.on_delete.extend(
        [
            user_repository.remove_user,
            meal_repository.remove_user,
            summary_repository.remove_user,
        ]
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        auth_service=auth_service,
        user_service=UserService(user_repository, settings.default_timezone),
        meal_service=meal_service,
        summary_service=summary_service,
        nutrition_service=NutritionService(cache=InMemoryCache()),
        close_resources=close_resources,
    )


@pytest.fixture
def user(
    auth_gateway: FakeAuthGateway, user_repository: InMemoryUserRepository
) -> AuthUser:
    account = AuthUser(
        id=uuid4(), email="ada@example.com", name="Ada Lovelace", email_verified=True
    )
    auth_gateway.tokens[TEST_TOKEN] = account
    user_repository.accounts[account.id] = UserAccount(
        id=account.id, email=account.email, name=account.name, role="user"
    )
    return account


@pytest.fixture
def auth_headers(user: AuthUser) -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_TOKEN}"}
