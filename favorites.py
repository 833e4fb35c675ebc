import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import ARTS, FAVORITES, serialize_doc
from errors import Conflict, ValidationError
from normalize import normalize_email, parse_object_id
from schemas import Favorite as FavoriteSchema

logger = logging.getLogger(__name__)


class FavoriteRegistry:
    """Per-user bookmarks of artworks.

    ``artworkId`` is a weak reference: the artwork may be gone, in which case
    the joined ``art`` is None.
    """

    def __init__(self, db: Database):
        self.collection = db[FAVORITES]
        self.arts = db[ARTS]

    def add(self, artwork_id: Optional[str], user_email: Optional[str]) -> Dict[str, str]:
        email = normalize_email(user_email)
        if not artwork_id or not email:
            raise ValidationError("artworkId and userEmail are required")
        obj_id = parse_object_id(artwork_id, "artwork id")

        if self.collection.find_one({"artworkId": obj_id, "userEmail": email}):
            raise Conflict("Artwork already in favorites")
        favorite = FavoriteSchema(artworkId=obj_id, userEmail=email, createdAt=datetime.now(timezone.utc))
        try:
            res = self.collection.insert_one(favorite.model_dump())
        except DuplicateKeyError:
            raise Conflict("Artwork already in favorites")
        return {"insertedId": str(res.inserted_id)}

    def list_for_user(self, user_email: Optional[str]) -> List[Dict[str, Any]]:
        email = normalize_email(user_email)
        if not email:
            raise ValidationError("email is required")
        favorites = list(self.collection.find({"userEmail": email}).sort([("createdAt", DESCENDING), ("_id", DESCENDING)]))

        ids = [f["artworkId"] for f in favorites if isinstance(f.get("artworkId"), ObjectId)]
        arts = {a["_id"]: a for a in self.arts.find({"_id": {"$in": ids}})} if ids else {}
        out = []
        for fav in favorites:
            item = serialize_doc(fav)
            art = arts.get(fav.get("artworkId"))
            item["art"] = serialize_doc(art) if art else None
            out.append(item)
        return out

    def remove(self, favorite_id: str) -> Dict[str, Any]:
        res = self.collection.delete_one({"_id": parse_object_id(favorite_id, "favorite id")})
        return {"acknowledged": res.acknowledged, "deletedCount": res.deleted_count}

    def remove_for_artwork(self, artwork_id: ObjectId) -> int:
        res = self.collection.delete_many({"artworkId": {"$in": [artwork_id, str(artwork_id)]}})
        if res.deleted_count:
            logger.info("Removed %d favorites of artwork %s", res.deleted_count, artwork_id)
        return res.deleted_count
