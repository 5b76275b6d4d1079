"""ReviewLedger: the `reviews` collection, keyed by the reviewed freelancer."""
import logging

from bson import ObjectId
from pymongo.errors import PyMongoError

from shared.utils import str_to_oid
from app.errors import NotFound, StoreFailure
from app.models import ReviewDB, ReviewerDB

logger = logging.getLogger(__name__)

COLLECTION = "reviews"

LIST_PROJECTION = {
    "_id": 0,
    "rating": 1,
    "created_at": 1,
    "reviewer.name": 1,
    "description": 1,
    "recommend": 1,
}


class ReviewLedger:
    def __init__(self, db):
        self.collection = db[COLLECTION]

    async def ensure_indexes(self):
        await self.collection.create_index("freelancer_id")

    async def list_for_profile(self, profile_id) -> list:
        oid = str_to_oid(profile_id)
        if oid is None:
            return []
        try:
            cursor = self.collection.find({"freelancer_id": oid}, LIST_PROJECTION)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Error querying reviews", extra={"collection": COLLECTION, "freelancer_id": str(oid)}, exc_info=True)
            raise StoreFailure(f"Unable to query {COLLECTION}") from e

    async def add_review(self, profile_id, review_data: dict) -> ObjectId:
        # The freelancer's existence is the caller's concern
        oid = str_to_oid(profile_id)
        if oid is None:
            raise NotFound(f"Freelancer {profile_id} not found")

        review = ReviewDB(
            freelancer_id=oid,
            reviewer=ReviewerDB(name=review_data["reviewer_name"], email=review_data.get("email")),
            description=review_data["description"],
            rating=review_data["rating"],
            recommend=review_data["recommend"],
        )
        try:
            result = await self.collection.insert_one(review.model_dump(by_alias=True, exclude={"id"}))
        except PyMongoError as e:
            logger.error("Error inserting review", extra={"collection": COLLECTION, "freelancer_id": str(oid)}, exc_info=True)
            raise StoreFailure(f"Unable to insert into {COLLECTION}") from e
        return result.inserted_id

    async def remove_all_for_profile(self, profile_id) -> int:
        oid = str_to_oid(profile_id)
        if oid is None:
            return 0
        try:
            result = await self.collection.delete_many({"freelancer_id": oid})
        except PyMongoError as e:
            logger.error("Error removing reviews", extra={"collection": COLLECTION, "freelancer_id": str(oid)}, exc_info=True)
            raise StoreFailure(f"Unable to delete from {COLLECTION}") from e
        return result.deleted_count
