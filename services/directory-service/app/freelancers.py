"""
ProfileRepository: the `freelancers` collection.

A profile may point at a credential through `login_id`. That reference is not
ownership, but it is kept honest here: a profile is only written after its
credential exists, and a credential is only removed after its profile is gone.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from shared.utils import str_to_oid
from app.credentials import CredentialStore
from app.errors import InvalidCredentialPair, StoreFailure, ValidationError
from app.models import FreelancerDB

logger = logging.getLogger(__name__)

COLLECTION = "freelancers"

# Never written through update()
PROTECTED_FIELDS = ("_id", "id", "login_id", "created_at", "username", "password")

PUBLIC_PROJECTION = {"login_id": 0}
LOGIN_PROJECTION = {"login_id": 0, "created_at": 0}


@dataclass
class UpdateOutcome:
    matched: bool
    modified: bool


class ProfileRepository:
    def __init__(self, db, credentials: CredentialStore):
        self.collection = db[COLLECTION]
        self.credentials = credentials

    async def ensure_indexes(self):
        await self.collection.create_index("login_id")

    async def create(self, profile_data: dict) -> ObjectId:
        data = {k: v for k, v in profile_data.items() if k not in ("_id", "id", "created_at", "login_id")}
        username = data.pop("username", None)
        password = data.pop("password", None)
        if bool(username) != bool(password):
            raise InvalidCredentialPair()

        # The document must be valid before a login is taken for it
        try:
            freelancer = FreelancerDB(**data, created_at=datetime.utcnow())
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid freelancer profile: {e.error_count()} field error(s)") from e

        if username:
            # DuplicateUsername propagates; no profile is written without its login
            freelancer.login_id = await self.credentials.register(username, password)
        login_id = freelancer.login_id

        try:
            result = await self.collection.insert_one(freelancer.model_dump(by_alias=True, exclude={"id"}))
        except PyMongoError as e:
            logger.error("Error inserting freelancer", extra={"collection": COLLECTION, "login_id": str(login_id)}, exc_info=True)
            if login_id is not None:
                await self._discard_login(login_id)
            raise StoreFailure(f"Unable to insert into {COLLECTION}") from e

        logger.info("Created freelancer", extra={"collection": COLLECTION, "freelancer_id": str(result.inserted_id)})
        return result.inserted_id

    async def update(self, profile_id, fields: dict) -> UpdateOutcome:
        oid = str_to_oid(profile_id)
        if oid is None:
            return UpdateOutcome(matched=False, modified=False)

        update_data = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
        if not update_data:
            exists = await self.get_by_id(oid, {"_id": 1})
            return UpdateOutcome(matched=exists is not None, modified=False)

        try:
            result = await self.collection.update_one({"_id": oid}, {"$set": update_data})
        except PyMongoError as e:
            logger.error("Error updating freelancer", extra={"collection": COLLECTION, "freelancer_id": str(oid)}, exc_info=True)
            raise StoreFailure(f"Unable to update {COLLECTION}") from e

        return UpdateOutcome(matched=result.matched_count == 1, modified=result.modified_count == 1)

    async def remove(self, profile_id) -> bool:
        """
        Delete a profile and the login it references.

        Reviews and survey records are left alone; the account deletion saga
        in app.accounts takes care of those.
        """
        freelancer = await self.get_by_id(profile_id)
        if freelancer is None:
            return False

        try:
            result = await self.collection.delete_one({"_id": freelancer["_id"]})
        except PyMongoError as e:
            logger.error("Error removing freelancer", extra={"collection": COLLECTION, "freelancer_id": str(freelancer["_id"])}, exc_info=True)
            raise StoreFailure(f"Unable to delete from {COLLECTION}") from e

        if result.deleted_count != 1:
            return False

        login_id = freelancer.get("login_id")
        if login_id is not None:
            await self._discard_login(login_id, freelancer_id=freelancer["_id"])
        return True

    async def _discard_login(self, login_id, freelancer_id=None):
        extra = {"collection": COLLECTION, "login_id": str(login_id), "freelancer_id": str(freelancer_id)}
        try:
            removed = await self.credentials.remove(login_id)
        except StoreFailure:
            logger.warning("Login cleanup failed, leaving orphan login", extra=extra, exc_info=True)
            return
        if not removed:
            logger.warning("No login removed for freelancer", extra=extra)

    async def get(self, criteria: Optional[dict] = None, projection: Optional[dict] = None) -> list:
        try:
            cursor = self.collection.find(criteria or {}, projection)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Error querying freelancers", extra={"collection": COLLECTION}, exc_info=True)
            raise StoreFailure(f"Unable to query {COLLECTION}") from e

    async def get_by_id(self, profile_id, projection: Optional[dict] = None) -> Optional[dict]:
        oid = str_to_oid(profile_id)
        if oid is None:
            return None
        try:
            return await self.collection.find_one({"_id": oid}, projection)
        except PyMongoError as e:
            logger.error("Error querying freelancer", extra={"collection": COLLECTION, "freelancer_id": str(oid)}, exc_info=True)
            raise StoreFailure(f"Unable to query {COLLECTION}") from e

    async def get_by_login(self, login_id, projection: Optional[dict] = None) -> Optional[dict]:
        try:
            return await self.collection.find_one({"login_id": login_id}, projection)
        except PyMongoError as e:
            logger.error("Error querying freelancer by login", extra={"collection": COLLECTION, "login_id": str(login_id)}, exc_info=True)
            raise StoreFailure(f"Unable to query {COLLECTION}") from e

    @staticmethod
    def build_search_criteria(
        freelancer_type: Optional[str] = None,
        specialized: Optional[list] = None,
        search: Optional[str] = None,
        min_rate: Optional[int] = None,
        max_rate: Optional[int] = None,
        rate_unit: Optional[str] = None,
    ) -> dict:
        criteria = {}
        if freelancer_type:
            criteria["type"] = freelancer_type
        if specialized:
            criteria["specialized"] = {"$in": list(specialized)}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            criteria["$or"] = [
                {"name": pattern},
                {"bio": pattern},
                {"portfolios.title": pattern},
                {"portfolios.description": pattern},
            ]

        rate_query = {}
        if min_rate is not None:
            rate_query["$gte"] = min_rate
        if max_rate is not None:
            rate_query["$lte"] = max_rate
        if rate_query:
            # Hourly and per-session figures are not comparable
            if not rate_unit:
                raise ValidationError("A rate range requires rateUnit")
            criteria["rate"] = rate_query
        if rate_unit:
            criteria["rate_unit"] = rate_unit
        return criteria
