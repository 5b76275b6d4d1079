"""
AccountLifecycleCoordinator: the sequences that span more than one collection.

Account deletion runs as a small saga. Each state is entered in order; the
profile delete is the only step that decides the outcome, the cleanup steps
after it log their failures and carry on. There is no rollback, so the order
of the steps is what keeps a crash harmless: at worst an orphan login, orphan
reviews or a missing survey record are left behind, never a profile whose
login has vanished.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from app.credentials import CredentialStore
from app.errors import AuthenticationFailed, StoreFailure, ValidationError
from app.freelancers import LOGIN_PROJECTION, ProfileRepository, UpdateOutcome
from app.reviews import ReviewLedger
from app.surveys import ACCOUNT_DELETION, SurveyRecorder
from app.vocabulary import is_valid_specializations, is_valid_type

logger = logging.getLogger(__name__)


class DeletionState(str, enum.Enum):
    START = "start"
    LOAD_PROFILE = "load-profile"
    RESOLVE_CREDENTIAL = "resolve-credential"
    VERIFY_PASSWORD = "verify-password"
    CASCADE_DELETE = "cascade-delete"
    DONE = "done"
    NOT_FOUND = "not-found"
    UNAUTHORIZED = "unauthorized"


@dataclass
class DeletionResult:
    freelancer_id: str
    state: DeletionState = DeletionState.START
    profile_deleted: bool = False
    reviews_deleted: int = 0
    survey_id: Optional[str] = None
    failed_steps: list = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state == DeletionState.DONE and self.profile_deleted


class AccountDeletion:
    """One run of the delete-account saga for a single freelancer."""

    def __init__(self, coordinator: "AccountLifecycleCoordinator", freelancer_id, reason: str,
                 password: str, additional_info: Optional[str] = None):
        self.coordinator = coordinator
        self.freelancer_id = freelancer_id
        self.reason = reason
        self.password = password
        self.additional_info = additional_info
        self.result = DeletionResult(freelancer_id=str(freelancer_id))
        self.profile = None
        self.username = None

    def _enter(self, state: DeletionState):
        self.result.state = state
        logger.debug("Account deletion step", extra={"freelancer_id": self.result.freelancer_id, "step": state.value})

    async def run(self) -> DeletionResult:
        self._enter(DeletionState.LOAD_PROFILE)
        self.profile = await self.coordinator.profiles.get_by_id(self.freelancer_id)
        if self.profile is None:
            self._enter(DeletionState.NOT_FOUND)
            return self.result

        self._enter(DeletionState.RESOLVE_CREDENTIAL)
        login_id = self.profile.get("login_id")
        login = await self.coordinator.credentials.get_username_by_id(login_id) if login_id else None
        if login is None:
            # Nothing to check the password against
            self._enter(DeletionState.UNAUTHORIZED)
            return self.result
        self.username = login["username"]

        self._enter(DeletionState.VERIFY_PASSWORD)
        if await self.coordinator.credentials.verify(self.username, self.password) is None:
            self._enter(DeletionState.UNAUTHORIZED)
            return self.result

        self._enter(DeletionState.CASCADE_DELETE)
        # Removes the login as well, after the profile document is gone
        self.result.profile_deleted = await self.coordinator.profiles.remove(self.profile["_id"])
        if not self.result.profile_deleted:
            # A concurrent deletion got there first and owns the cleanup
            logger.warning("Profile already removed", extra={"freelancer_id": self.result.freelancer_id})
            self._enter(DeletionState.NOT_FOUND)
            return self.result
        await self._remove_reviews()
        await self._record_survey()

        self._enter(DeletionState.DONE)
        return self.result

    async def _remove_reviews(self):
        try:
            self.result.reviews_deleted = await self.coordinator.reviews.remove_all_for_profile(self.profile["_id"])
        except StoreFailure:
            self.result.failed_steps.append("reviews")
            logger.warning("Review cleanup failed", extra={"freelancer_id": self.result.freelancer_id}, exc_info=True)

    async def _record_survey(self):
        entry = {
            "category": ACCOUNT_DELETION,
            "response": {
                "reasonToLeave": self.reason,
                "additionalInfo": self.additional_info,
            },
        }
        try:
            survey_id = await self.coordinator.surveys.record(entry)
            self.result.survey_id = str(survey_id)
        except StoreFailure:
            self.result.failed_steps.append("survey")
            logger.warning("Survey recording failed", extra={"freelancer_id": self.result.freelancer_id}, exc_info=True)


class AccountLifecycleCoordinator:
    def __init__(self, credentials: CredentialStore, profiles: ProfileRepository,
                 reviews: ReviewLedger, surveys: SurveyRecorder):
        self.credentials = credentials
        self.profiles = profiles
        self.reviews = reviews
        self.surveys = surveys

    @staticmethod
    def check_profile(data: dict):
        if not is_valid_type(data.get("type")):
            raise ValidationError(f"Invalid freelancer type: {data.get('type')}")
        if not is_valid_specializations(data.get("specialized")):
            raise ValidationError("Invalid specializations")

    async def create_freelancer(self, data: dict):
        self.check_profile(data)
        return await self.profiles.create(data)

    async def update_freelancer(self, freelancer_id, data: dict) -> UpdateOutcome:
        self.check_profile(data)
        return await self.profiles.update(freelancer_id, data)

    async def login(self, username: str, password: str) -> dict:
        login = await self.credentials.verify(username, password)
        if login is None:
            raise AuthenticationFailed()
        freelancer = await self.profiles.get_by_login(login["_id"], LOGIN_PROJECTION)
        if freelancer is None:
            raise AuthenticationFailed()
        return freelancer

    async def change_password(self, username: str, current_password: str, new_password: str) -> bool:
        return await self.credentials.change_password(username, current_password, new_password)

    async def delete_account(self, freelancer_id, reason: str, password: str,
                             additional_info: Optional[str] = None) -> DeletionResult:
        result = await AccountDeletion(self, freelancer_id, reason, password, additional_info).run()
        logger.info(
            "Account deletion finished",
            extra={"freelancer_id": result.freelancer_id, "step": result.state.value},
        )
        return result
