import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.database import Database

from database import REPORTS, serialize_doc
from errors import ValidationError
from normalize import normalize_email, parse_object_id
from schemas import Report as ReportSchema

logger = logging.getLogger(__name__)


class ReportLedger:
    """Moderation flags raised against artworks. Resolving a report removes it."""

    def __init__(self, db: Database):
        self.collection = db[REPORTS]

    def submit(self, artwork_id: Optional[str], reporter_email: Optional[str], reason: Optional[str],
               art_title: Optional[str] = None) -> Dict[str, Any]:
        email = normalize_email(reporter_email)
        if not artwork_id or not email or not reason:
            raise ValidationError("artworkId, reporterEmail and reason are required")
        report = ReportSchema(
            artworkId=parse_object_id(artwork_id, "artwork id"),
            artTitle=art_title,
            reporterEmail=email,
            reason=reason,
            createdAt=datetime.now(timezone.utc),
        )
        res = self.collection.insert_one(report.model_dump())
        logger.info("Report %s filed against artwork %s", res.inserted_id, artwork_id)
        return {"acknowledged": res.acknowledged, "insertedId": str(res.inserted_id)}

    def list_all(self) -> List[Dict[str, Any]]:
        cursor = self.collection.find({}).sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        return [serialize_doc(r) for r in cursor]

    def resolve(self, report_id: str) -> Dict[str, Any]:
        res = self.collection.delete_one({"_id": parse_object_id(report_id, "report id")})
        return {"acknowledged": res.acknowledged, "deletedCount": res.deleted_count}

    def remove_for_artwork(self, artwork_id: ObjectId) -> int:
        res = self.collection.delete_many({"artworkId": {"$in": [artwork_id, str(artwork_id)]}})
        if res.deleted_count:
            logger.info("Removed %d reports of artwork %s", res.deleted_count, artwork_id)
        return res.deleted_count

    def count_reported_artworks(self) -> int:
        return len(self.collection.distinct("artworkId"))

    def count(self) -> int:
        return self.collection.count_documents({})
