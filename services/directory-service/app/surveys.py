"""SurveyRecorder: append-only `surveys` collection for account feedback."""
import logging
from typing import Optional

from bson import ObjectId
from pymongo.errors import PyMongoError

from app.errors import StoreFailure
from app.models import SurveyDB

logger = logging.getLogger(__name__)

COLLECTION = "surveys"

ACCOUNT_DELETION = "account-deletion"


class SurveyRecorder:
    def __init__(self, db):
        self.collection = db[COLLECTION]

    async def record(self, entry: dict) -> ObjectId:
        survey = SurveyDB(category=entry["category"], response=entry.get("response") or {})
        try:
            result = await self.collection.insert_one(survey.model_dump(by_alias=True, exclude={"id"}))
        except PyMongoError as e:
            logger.error("Error inserting survey", extra={"collection": COLLECTION}, exc_info=True)
            raise StoreFailure(f"Unable to insert into {COLLECTION}") from e
        return result.inserted_id

    async def get(self, query: Optional[dict] = None, projection: Optional[dict] = None) -> list:
        try:
            cursor = self.collection.find(query or {}, projection)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Error querying surveys", extra={"collection": COLLECTION}, exc_info=True)
            raise StoreFailure(f"Unable to query {COLLECTION}") from e
