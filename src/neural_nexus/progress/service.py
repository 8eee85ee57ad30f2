"""Progress facade: one method per tracked user action.

Every method loads the user document under its per-user lock, applies the
whole sequence of log -> daily stats -> experience -> achievements in memory,
normalizes, and writes the document once. Any exception before the write
discards the in-memory changes, so an action either lands completely or not
at all.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta

import pydantic
import structlog
from pydantic import JsonValue

from neural_nexus.auth.security import hash_password, verify_password
from neural_nexus.errors import AuthenticationError, ValidationError
from neural_nexus.models.progress import ActivityAction, Preferences, ProgressSummary
from neural_nexus.models.user import User
from neural_nexus.progress.achievements import (
    THREE_DAY_STREAK,
    WELCOME,
    award_achievement,
    evaluate_achievements,
)
from neural_nexus.progress.activity import log_activity
from neural_nexus.progress.daily_stats import update_daily_stats
from neural_nexus.progress.experience import add_experience
from neural_nexus.progress.normalize import normalize_user
from neural_nexus.progress.streak import calculate_streak
from neural_nexus.storage.goals import GoalStore
from neural_nexus.storage.users import UserStore

logger = structlog.get_logger()

REGISTRATION_EXPERIENCE = 10
DAILY_LOGIN_BONUS = 5
GOAL_CREATED_EXPERIENCE = 10
GOAL_COMPLETED_EXPERIENCE = 50
SESSION_IDLE_TIMEOUT = timedelta(minutes=30)

# Experience for actions reported explicitly by the client.
CLIENT_ACTIVITY_EXPERIENCE: dict[ActivityAction, int] = {
    ActivityAction.GOAL_CREATED: 10,
    ActivityAction.GOAL_COMPLETED: 50,
    ActivityAction.CURRICULUM_VIEWED: 5,
    ActivityAction.LOGIN: 2,
}


@dataclass(frozen=True)
class TrackedActivity:
    experience: int = 0
    time_spent: int = 0
    update_stats: bool = False


# Side-effect actions recorded by request handlers.
TRACKED_ACTIVITIES: dict[ActivityAction, TrackedActivity] = {
    ActivityAction.GOAL_VIEWED: TrackedActivity(experience=2),
    ActivityAction.CURRICULUM_VIEWED: TrackedActivity(experience=5, time_spent=5, update_stats=True),
    ActivityAction.PROFILE_UPDATED: TrackedActivity(experience=5),
    ActivityAction.DASHBOARD_VIEWED: TrackedActivity(experience=1),
    ActivityAction.SETTINGS_UPDATED: TrackedActivity(experience=2),
}


def _first_error(exc: pydantic.ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    return f"{field}: {error['msg']}" if field else error["msg"]


class ProgressService:
    """Applies tracked actions to user documents.

    Args:
        users: User document store.
        goals: Goal store, read by the achievement rules.
        clock: Source of "now"; local naive datetimes.
    """

    def __init__(
        self,
        users: UserStore,
        goals: GoalStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.users = users
        self.goals = goals
        self.clock = clock

    @contextmanager
    def _mutate(self, user_id: str) -> Iterator[User]:
        with self.users.locked(user_id):
            user = self.users.load(user_id)
            yield user
            normalize_user(user)
            self.users.save(user)

    def _evaluate(self, user: User, now: datetime) -> list[str]:
        new_achievements = evaluate_achievements(user, self.goals.find_by_user(user.id), now)
        if new_achievements:
            logger.info("achievements_granted", user_id=user.id, names=new_achievements)
        return new_achievements

    @staticmethod
    def _summary(
        user: User,
        experience_gained: int = 0,
        leveled_up: bool = False,
        new_achievements: list[str] | None = None,
    ) -> ProgressSummary:
        stats = user.progress_stats
        return ProgressSummary(
            level=stats.level,
            experience=stats.experience,
            streak=stats.current_streak,
            new_achievements=new_achievements or [],
            experience_gained=experience_gained,
            leveled_up=leveled_up,
        )

    def _apply(
        self,
        user_id: str,
        action: ActivityAction,
        goal_id: str | None = None,
        metadata: dict[str, JsonValue] | None = None,
        experience: int = 0,
        time_spent: int = 0,
        update_stats: bool = False,
        evaluate: bool = False,
    ) -> ProgressSummary:
        with self._mutate(user_id) as user:
            now = self.clock()
            log_activity(user, action, goal_id, metadata, now)
            if update_stats:
                update_daily_stats(user, action, time_spent, now)
            leveled_up = add_experience(user, experience)
            new_achievements = self._evaluate(user, now) if evaluate else []
        logger.debug("activity_applied", user_id=user_id, action=action.value, experience=experience)
        return self._summary(user, experience, leveled_up, new_achievements)

    # Account lifecycle

    def register(
        self,
        name: str,
        email: str,
        password: str,
        metadata: dict[str, JsonValue] | None = None,
    ) -> tuple[User, ProgressSummary]:
        """Create the account with its welcome achievement and starting experience."""
        now = self.clock()
        try:
            user = User(
                name=name,
                email=email,
                password_hash=hash_password(password or ""),
                created_at=now,
                updated_at=now,
            )
        except pydantic.ValidationError as exc:
            raise ValidationError(_first_error(exc)) from exc

        log_activity(
            user,
            ActivityAction.REGISTRATION,
            metadata={"registration_date": now.isoformat(), **(metadata or {})},
            now=now,
        )
        award_achievement(user, WELCOME, now)
        leveled_up = add_experience(user, REGISTRATION_EXPERIENCE)

        normalize_user(user)
        self.users.create(user)
        return user, self._summary(user, REGISTRATION_EXPERIENCE, leveled_up, [WELCOME.name])

    def login(
        self,
        email: str,
        password: str,
        metadata: dict[str, JsonValue] | None = None,
    ) -> tuple[User, ProgressSummary]:
        """Verify credentials, then apply the login sequence.

        The daily bonus and the ``three_day_streak`` check happen only on the
        first login of a calendar day.
        """
        if not email or not password:
            raise ValidationError("Please provide email and password")
        found = self.users.find_by_email(email)
        if found is None or not verify_password(password, found.password_hash):
            raise AuthenticationError("Invalid Credentials")

        with self._mutate(found.id) as user:
            now = self.clock()
            first_login_today = (
                user.last_login_date is None or user.last_login_date.date() != now.date()
            )
            log_activity(
                user,
                ActivityAction.LOGIN,
                metadata={"login_time": now.isoformat(), **(metadata or {})},
                now=now,
            )
            user.last_login_date = now
            streak = calculate_streak(user, now)

            experience_gained = 0
            leveled_up = False
            new_achievements = []
            if first_login_today:
                experience_gained = DAILY_LOGIN_BONUS
                leveled_up = add_experience(user, DAILY_LOGIN_BONUS)
                if streak == 3 and award_achievement(user, THREE_DAY_STREAK, now):
                    new_achievements.append(THREE_DAY_STREAK.name)
            new_achievements.extend(self._evaluate(user, now))

        logger.info("user_logged_in", user_id=user.id, streak=user.progress_stats.current_streak)
        return user, self._summary(user, experience_gained, leveled_up, new_achievements)

    def start_session(
        self,
        user_id: str,
        metadata: dict[str, JsonValue] | None = None,
    ) -> ProgressSummary | None:
        """Log ``session_start`` when the user returns after 30 idle minutes.

        Never touches ``last_login_date``: the first-login-of-day rewards
        belong to ``login`` alone.

        Returns:
            None when the user was active recently and nothing changed.
        """
        with self.users.locked(user_id):
            user = self.users.load(user_id)
            now = self.clock()
            last_activity = user.last_activity_date
            if last_activity is not None and now - last_activity <= SESSION_IDLE_TIMEOUT:
                return None

            log_activity(
                user,
                ActivityAction.SESSION_START,
                metadata={"session_start": now.isoformat(), **(metadata or {})},
                now=now,
            )
            normalize_user(user)
            self.users.save(user)
        return self._summary(user)

    # Goal and curriculum actions

    def goal_created(self, user_id: str, goal_id: str) -> ProgressSummary:
        return self._apply(
            user_id,
            ActivityAction.GOAL_CREATED,
            goal_id=goal_id,
            experience=GOAL_CREATED_EXPERIENCE,
            update_stats=True,
            evaluate=True,
        )

    def goal_completed(self, user_id: str, goal_id: str) -> ProgressSummary:
        """Call once per transition into ``completed``, after the goal is saved."""
        return self._apply(
            user_id,
            ActivityAction.GOAL_COMPLETED,
            goal_id=goal_id,
            experience=GOAL_COMPLETED_EXPERIENCE,
            update_stats=True,
            evaluate=True,
        )

    def curriculum_viewed(self, user_id: str, goal_id: str) -> ProgressSummary:
        return self.track(user_id, ActivityAction.CURRICULUM_VIEWED, goal_id=goal_id)

    def record_curriculum_generated(self, user_id: str, goal_id: str) -> ProgressSummary:
        return self._apply(user_id, ActivityAction.CURRICULUM_GENERATED, goal_id=goal_id)

    def track(
        self,
        user_id: str,
        action: ActivityAction,
        goal_id: str | None = None,
        metadata: dict[str, JsonValue] | None = None,
    ) -> ProgressSummary:
        """Record a side-effect action with its fixed reward from TRACKED_ACTIVITIES."""
        tracked = TRACKED_ACTIVITIES.get(action, TrackedActivity())
        return self._apply(
            user_id,
            action,
            goal_id=goal_id,
            metadata=metadata,
            experience=tracked.experience,
            time_spent=tracked.time_spent,
            update_stats=tracked.update_stats,
        )

    def log_client_activity(
        self,
        user_id: str,
        action: str,
        goal_id: str | None = None,
        time_spent: int = 0,
        metadata: dict[str, JsonValue] | None = None,
    ) -> ProgressSummary:
        """Apply an action reported by the client, with its own time spent."""
        if not action:
            raise ValidationError("Action is required")
        try:
            kind = ActivityAction(action)
        except ValueError as exc:
            raise ValidationError(f"Unknown action: {action}") from exc
        if time_spent < 0:
            raise ValidationError("time_spent must be non-negative")

        return self._apply(
            user_id,
            kind,
            goal_id=goal_id,
            metadata=metadata,
            experience=CLIENT_ACTIVITY_EXPERIENCE.get(kind, 0),
            time_spent=time_spent,
            update_stats=True,
            evaluate=True,
        )

    def check_achievements(self, user_id: str) -> list[str]:
        """Evaluate the rule table on its own and persist any new grants."""
        with self._mutate(user_id) as user:
            new_achievements = self._evaluate(user, self.clock())
        return new_achievements

    # Profile and settings

    def update_profile(self, user_id: str, name: str | None = None, email: str | None = None) -> User:
        with self.users.registry_lock():
            with self._mutate(user_id) as user:
                old_email = user.email
                changes = {k: v for k, v in (("name", name), ("email", email)) if v}
                try:
                    checked = User.model_validate({**user.model_dump(), **changes})
                except pydantic.ValidationError as exc:
                    raise ValidationError(_first_error(exc)) from exc
                if checked.email != old_email:
                    self.users.ensure_email_available(checked.email, user.id)
                user.name = checked.name
                user.email = checked.email
                now = self.clock()
                log_activity(user, ActivityAction.PROFILE_UPDATED, now=now)
                add_experience(user, TRACKED_ACTIVITIES[ActivityAction.PROFILE_UPDATED].experience)
            if user.email != old_email:
                self.users.reindex_email(old_email, user)
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError("Please provide current and new password")
        new_hash = hash_password(new_password)
        with self._mutate(user_id) as user:
            if not verify_password(current_password, user.password_hash):
                raise ValidationError("Current password is incorrect")
            user.password_hash = new_hash
            log_activity(user, ActivityAction.PASSWORD_CHANGED, now=self.clock())
        logger.info("password_changed", user_id=user_id)

    def update_preferences(self, user_id: str, **changes: bool | None) -> Preferences:
        with self._mutate(user_id) as user:
            for key, value in changes.items():
                if value is not None and key in Preferences.model_fields:
                    setattr(user.preferences, key, value)
            log_activity(user, ActivityAction.SETTINGS_UPDATED, now=self.clock())
            add_experience(user, TRACKED_ACTIVITIES[ActivityAction.SETTINGS_UPDATED].experience)
        return user.preferences
