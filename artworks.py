"""
Artwork repository.

Owns the ``arts`` collection: create, search, featured, update, delete and
the like counter. Favorites and reports hold weak references to artworks by
id; deleting an artwork asks their registries to drop them, best-effort.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import ARTS, serialize_doc
from errors import CatalogError, InvalidState, NotFound, ValidationError
from normalize import (
    coerce_price,
    first_present,
    normalize_email,
    normalize_visibility,
    parse_object_id,
)
from schemas import Artwork as ArtworkSchema

logger = logging.getLogger(__name__)

AUTHOR_EMAIL_KEYS = ("userEmail", "authorEmail", "artistEmail", "email")
AUTHOR_NAME_KEYS = ("userName", "authorName", "artistName")
AUTHOR_PHOTO_KEYS = ("artistPhoto", "authorPhoto", "userPhoto")

# Controlled by create() and like()/unlike() only.
PROTECTED_FIELDS = ("_id", "id", "likes", "createdAt", "updatedAt")
# Cannot be blanked by an update.
REQUIRED_FIELDS = ("title", "image", "userName", "userEmail")

NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]
SORTS = {"recent": NEWEST_FIRST}

DEFAULT_PAGE_SIZE = 12
FEATURED_COUNT = 6


def visibility_filter(visibility: str) -> Dict[str, Any]:
    """Case-insensitive match on a canonical visibility value."""
    return {"$regex": f"^{visibility}$", "$options": "i"}


class ArtworkRepository:
    def __init__(self, db: Database, users=None, favorites=None, reports=None):
        self.collection = db[ARTS]
        self.users = users
        self.favorites = favorites
        self.reports = reports

    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        title = fields.get("title")
        image = fields.get("image")
        author_name = first_present(fields, *AUTHOR_NAME_KEYS)
        author_email = normalize_email(first_present(fields, *AUTHOR_EMAIL_KEYS))
        if not title or not image or not author_name or not author_email:
            raise ValidationError("title, image, userName and userEmail are required")

        now = datetime.now(timezone.utc)
        artwork = ArtworkSchema(
            image=image,
            title=title,
            category=fields.get("category") or "Uncategorized",
            medium=fields.get("medium") or "",
            description=fields.get("description") or "",
            dimensions=fields.get("dimensions") or "",
            price=coerce_price(fields.get("price")),
            visibility=normalize_visibility(fields.get("visibility")),
            featured=bool(fields.get("featured") or False),
            userName=author_name,
            userEmail=author_email,
            artistEmail=normalize_email(fields.get("artistEmail")) or author_email,
            artistPhoto=first_present(fields, *AUTHOR_PHOTO_KEYS) or "",
            likes=0,
            createdAt=now,
            updatedAt=now,
        )
        res = self.collection.insert_one(artwork.model_dump())
        logger.info("Artwork %s created by %s", res.inserted_id, author_email)

        if self.users is not None:
            try:
                self.users.ensure_user(author_email, author_name, artwork.artistPhoto)
            except (PyMongoError, CatalogError):
                logger.exception("User record failed for %s", author_email)

        created = self.collection.find_one({"_id": res.inserted_id})
        return serialize_doc(created)

    def search(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        email: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort: Optional[str] = None,
        visibility: str = "Public",
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"visibility": visibility_filter(visibility)}
        if category:
            query["category"] = category
        if email:
            query["userEmail"] = normalize_email(email)
        if search:
            pattern = re.escape(search)
            query["$or"] = [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"userName": {"$regex": pattern, "$options": "i"}},
            ]

        page = max(1, int(page))
        limit = max(1, int(limit))
        skip = (page - 1) * limit
        order = SORTS.get(sort or "recent", NEWEST_FIRST)

        cursor = self.collection.find(query).sort(order).skip(skip).limit(limit)
        items = [serialize_doc(d) for d in cursor]
        total = self.collection.count_documents(query)
        return {"total": total, "page": page, "limit": limit, "data": items}

    def featured(self, n: int = FEATURED_COUNT) -> List[Dict[str, Any]]:
        query = {"visibility": visibility_filter("Public"), "featured": True}
        cursor = self.collection.find(query).sort(NEWEST_FIRST).limit(n)
        return [serialize_doc(d) for d in cursor]

    def get_by_id(self, artwork_id: str) -> Dict[str, Any]:
        art = self.collection.find_one({"_id": parse_object_id(artwork_id, "artwork id")})
        if not art:
            raise NotFound("Artwork not found")
        email = art.get("userEmail", "")
        artist = {
            "name": art.get("userName"),
            "email": email,
            "photo": art.get("artistPhoto", ""),
            "totalArtworks": self.collection.count_documents(
                {"userEmail": email, "visibility": visibility_filter("Public")}
            ),
        }
        return {"art": serialize_doc(art), "artist": artist}

    def update(self, artwork_id: str, fields: Dict[str, Any]) -> Dict[str, int]:
        obj_id = parse_object_id(artwork_id, "artwork id")
        # null means "not sent"; a price is cleared with "".
        changes = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS and v is not None}
        for key in REQUIRED_FIELDS:
            if key in changes and str(changes[key]).strip() == "":
                raise ValidationError(f"{key} cannot be empty")
        if "visibility" in changes:
            changes["visibility"] = normalize_visibility(changes["visibility"], default=None)
        if "price" in changes:
            changes["price"] = coerce_price(changes["price"])
        for key in ("userEmail", "artistEmail"):
            if key in changes:
                changes[key] = normalize_email(changes[key])
        changes["updatedAt"] = datetime.now(timezone.utc)

        res = self.collection.update_one({"_id": obj_id}, {"$set": changes})
        if res.matched_count == 0:
            raise NotFound("Artwork not found")
        return {"matchedCount": res.matched_count, "modifiedCount": res.modified_count}

    def like(self, artwork_id: str) -> int:
        art = self.collection.find_one_and_update(
            {"_id": parse_object_id(artwork_id, "artwork id")},
            {"$inc": {"likes": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if art is None:
            raise NotFound("Artwork not found")
        return art["likes"]

    def unlike(self, artwork_id: str) -> int:
        obj_id = parse_object_id(artwork_id, "artwork id")
        # Guard and decrement in one conditional update.
        art = self.collection.find_one_and_update(
            {"_id": obj_id, "likes": {"$gt": 0}},
            {"$inc": {"likes": -1}},
            return_document=ReturnDocument.AFTER,
        )
        if art is not None:
            return art["likes"]
        if self.collection.count_documents({"_id": obj_id}, limit=1) == 0:
            raise NotFound("Artwork not found")
        raise InvalidState("Likes cannot go below zero")

    def delete(self, artwork_id: str) -> Dict[str, Any]:
        obj_id = parse_object_id(artwork_id, "artwork id")
        res = self.collection.delete_one({"_id": obj_id})
        if res.deleted_count:
            logger.info("Artwork %s deleted", obj_id)

        for registry in (self.favorites, self.reports):
            if registry is None:
                continue
            try:
                registry.remove_for_artwork(obj_id)
            except PyMongoError:
                logger.exception("Cascade delete failed for artwork %s", obj_id)
        return {"acknowledged": res.acknowledged, "deletedCount": res.deleted_count}

    def total_likes(self) -> int:
        rows = list(self.collection.aggregate([
            {"$group": {"_id": None, "total": {"$sum": "$likes"}}},
        ]))
        return rows[0]["total"] if rows else 0

    def by_author(self, email: Optional[str]) -> List[Dict[str, Any]]:
        email = normalize_email(email)
        if not email:
            raise ValidationError("email is required")
        cursor = self.collection.find({"userEmail": email}).sort(NEWEST_FIRST)
        return [serialize_doc(d) for d in cursor]

    def count(self, visibility: Optional[str] = None, since: Optional[datetime] = None) -> int:
        query: Dict[str, Any] = {}
        if visibility:
            query["visibility"] = visibility_filter(visibility)
        if since is not None:
            query["createdAt"] = {"$gte": since}
        return self.collection.count_documents(query)

