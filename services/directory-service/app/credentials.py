"""
CredentialStore: the `logins` collection.

Holds username / bcrypt-hash pairs. The hash leaves this module only inside
`verify`, and never in a return value.
"""
import logging
from typing import Optional

from bson import ObjectId
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError, PyMongoError

from shared.utils import pwd_context, str_to_oid
from app.errors import AuthenticationFailed, DuplicateUsername, StoreFailure
from app.models import LoginDB

logger = logging.getLogger(__name__)

COLLECTION = "logins"


class CredentialStore:
    def __init__(self, db, hasher: CryptContext = pwd_context):
        self.collection = db[COLLECTION]
        self.hasher = hasher

    async def ensure_indexes(self):
        await self.collection.create_index("username", unique=True)

    async def get_by_username(self, username: str, include_password: bool = False) -> Optional[dict]:
        projection = {"username": 1}
        if include_password:
            projection["password_hash"] = 1
        try:
            return await self.collection.find_one({"username": username}, projection)
        except PyMongoError as e:
            logger.error("Error querying login by username", extra={"collection": COLLECTION, "username": username}, exc_info=True)
            raise StoreFailure(f"Unable to query {COLLECTION}") from e

    async def get_username_by_id(self, credential_id) -> Optional[dict]:
        oid = str_to_oid(credential_id)
        if oid is None:
            return None
        try:
            return await self.collection.find_one({"_id": oid}, {"username": 1})
        except PyMongoError as e:
            logger.error("Error querying login by id", extra={"collection": COLLECTION, "login_id": credential_id}, exc_info=True)
            raise StoreFailure(f"Unable to query {COLLECTION}") from e

    async def register(self, username: str, password: str) -> ObjectId:
        existing = await self.get_by_username(username)
        if existing is not None:
            raise DuplicateUsername(username)

        login = LoginDB(username=username, password_hash=self.hasher.hash(password))
        try:
            result = await self.collection.insert_one(login.model_dump(by_alias=True, exclude={"id"}))
        except DuplicateKeyError as e:
            # Lost the race against a concurrent registration of the same username
            raise DuplicateUsername(username) from e
        except PyMongoError as e:
            logger.error("Error inserting registration", extra={"collection": COLLECTION, "username": username}, exc_info=True)
            raise StoreFailure(f"Unable to insert into {COLLECTION}") from e

        logger.info("Registered login", extra={"collection": COLLECTION, "login_id": str(result.inserted_id)})
        return result.inserted_id

    async def verify(self, username: str, password: str) -> Optional[dict]:
        """Return the credential without its hash on a match, otherwise None."""
        login = await self.get_by_username(username, include_password=True)
        if login is None:
            # Same cost as a real comparison so unknown usernames are not observable
            self.hasher.dummy_verify()
            return None
        if not self.hasher.verify(password, login.get("password_hash")):
            return None
        login.pop("password_hash", None)
        return login

    async def change_password(self, username: str, current_password: str, new_password: str) -> bool:
        login = await self.verify(username, current_password)
        if login is None:
            raise AuthenticationFailed(
                "Unable to change password. Username does not exist or current password incorrect"
            )

        try:
            result = await self.collection.update_one(
                {"_id": login["_id"]},
                {"$set": {"password_hash": self.hasher.hash(new_password)}},
            )
        except PyMongoError as e:
            logger.error("Error updating password", extra={"collection": COLLECTION, "login_id": str(login["_id"])}, exc_info=True)
            raise StoreFailure(f"Unable to update {COLLECTION}") from e

        return result.matched_count == 1 and result.modified_count == 1

    async def remove(self, credential_id) -> bool:
        oid = str_to_oid(credential_id)
        if oid is None:
            return False
        try:
            result = await self.collection.delete_one({"_id": oid})
        except PyMongoError as e:
            logger.error("Error removing login", extra={"collection": COLLECTION, "login_id": str(credential_id)}, exc_info=True)
            raise StoreFailure(f"Unable to delete from {COLLECTION}") from e
        return result.deleted_count == 1
