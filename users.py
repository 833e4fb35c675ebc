"""
User directory.

Users are keyed by lower-cased email. Profile sync runs on every login and
never touches ``role``; roles change only through ``set_role``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import ARTS, USERS, serialize_doc
from errors import NotFound, ValidationError
from normalize import normalize_email, normalize_role, parse_object_id
from schemas import User as UserSchema

logger = logging.getLogger(__name__)

# Written on every sync vs. only when the user is first created.
ALWAYS_SET = ("displayName", "photoURL", "lastLogin")
SET_ON_INSERT = ("role", "createdAt")


class UserDirectory:
    def __init__(self, db: Database):
        self.collection = db[USERS]
        self.arts = db[ARTS]

    def sync_on_login(self, email: Optional[str], display_name: Optional[str] = None,
                      photo_url: Optional[str] = None) -> Dict[str, Any]:
        email = normalize_email(email)
        if not email:
            raise ValidationError("email is required")
        now = datetime.now(timezone.utc)
        profile = UserSchema(email=email, displayName=display_name, photoURL=photo_url,
                             createdAt=now, lastLogin=now)
        return self._upsert(email, {
            "$set": profile.model_dump(include=set(ALWAYS_SET)),
            "$setOnInsert": profile.model_dump(include=set(SET_ON_INSERT)),
        })

    def ensure_user(self, email: Optional[str], display_name: Optional[str] = None,
                    photo_url: Optional[str] = None) -> Dict[str, Any]:
        """Create the user if missing. An existing profile is left untouched."""
        email = normalize_email(email)
        if not email:
            raise ValidationError("email is required")
        profile = UserSchema(email=email, displayName=display_name, photoURL=photo_url,
                             createdAt=datetime.now(timezone.utc))
        return self._upsert(email, {
            "$setOnInsert": profile.model_dump(include={"displayName", "photoURL", *SET_ON_INSERT}),
        })

    def _upsert(self, email: str, update: Dict[str, Any]) -> Dict[str, Any]:
        try:
            res = self.collection.update_one({"email": email}, update, upsert=True)
        except DuplicateKeyError:
            # A concurrent first login inserted the user; this time the filter matches.
            res = self.collection.update_one({"email": email}, update, upsert=True)
        if res.upserted_id is not None:
            logger.info("User %s created", email)
        return {
            "matchedCount": res.matched_count,
            "modifiedCount": res.modified_count,
            "upsertedId": str(res.upserted_id) if res.upserted_id is not None else None,
        }

    def list_all(self) -> List[Dict[str, Any]]:
        counts = {
            row["_id"]: row["count"]
            for row in self.arts.aggregate([{"$group": {"_id": "$userEmail", "count": {"$sum": 1}}}])
        }
        users = []
        for user in self.collection.find({}):
            item = serialize_doc(user)
            item["artworkCount"] = counts.get(user.get("email"), 0)
            users.append(item)
        return users

    def is_admin(self, email: Optional[str]) -> bool:
        email = normalize_email(email)
        if not email:
            return False
        user = self.collection.find_one({"email": email}, {"role": 1})
        return bool(user) and user.get("role") == "Admin"

    def set_role(self, user_id: str, role: Optional[str]) -> Dict[str, int]:
        obj_id = parse_object_id(user_id, "user id")
        role = normalize_role(role)
        res = self.collection.update_one({"_id": obj_id}, {"$set": {"role": role}})
        if res.matched_count == 0:
            raise NotFound("User not found")
        logger.info("User %s role set to %s", obj_id, role)
        return {"matchedCount": res.matched_count, "modifiedCount": res.modified_count}

    def delete(self, user_id: str) -> Dict[str, Any]:
        res = self.collection.delete_one({"_id": parse_object_id(user_id, "user id")})
        return {"acknowledged": res.acknowledged, "deletedCount": res.deleted_count}

    def count(self) -> int:
        return self.collection.count_documents({})
