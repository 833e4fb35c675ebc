"""
Admin analytics.

Read-only statistics composed from the other repositories and collections,
computed fresh on every call.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from pymongo.collection import Collection
from pymongo.errors import OperationFailure

from artworks import ArtworkRepository
from reports import ReportLedger
from users import UserDirectory

logger = logging.getLogger(__name__)

TOP_CONTRIBUTORS = 5


def local_midnight_utc() -> datetime:
    """Start of the current local day as a naive UTC datetime, the way MongoDB stores dates."""
    midnight = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


def daily_growth(collection: Collection) -> List[Dict[str, Any]]:
    """Documents created per UTC day, oldest day first."""
    pipeline = [
        {"$match": {"createdAt": {"$ne": None}}},
        {"$group": {
            "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$createdAt"}},
            "count": {"$sum": 1},
        }},
        {"$sort": {"_id": 1}},
    ]
    return [{"date": row["_id"], "count": row["count"]} for row in collection.aggregate(pipeline)]


class AnalyticsAggregator:
    def __init__(self, artworks: ArtworkRepository, users: UserDirectory, reports: ReportLedger):
        self.artworks = artworks
        self.users = users
        self.reports = reports

    def top_contributors(self, n: int = TOP_CONTRIBUTORS) -> List[Dict[str, Any]]:
        pipeline = [
            {"$group": {"_id": "$userEmail", "name": {"$first": "$userName"}, "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
            {"$limit": n},
        ]
        return [
            {"email": row["_id"], "name": row.get("name"), "count": row["count"]}
            for row in self.artworks.collection.aggregate(pipeline)
        ]

    def reported_artworks(self) -> int:
        try:
            return self.reports.count_reported_artworks()
        except OperationFailure:
            logger.warning("distinct on reports failed, falling back to report count")
            return self.reports.count()

    def stats(self) -> Dict[str, Any]:
        return {
            "totalUsers": self.users.count(),
            "totalPublicArtworks": self.artworks.count(visibility="Public"),
            "totalPrivateArtworks": self.artworks.count(visibility="Private"),
            "totalReportedArtworks": self.reported_artworks(),
            "totalLikes": self.artworks.total_likes(),
            "newArtworksToday": self.artworks.count(since=local_midnight_utc()),
            "topContributors": self.top_contributors(),
            "artworkGrowth": daily_growth(self.artworks.collection),
            "userGrowth": daily_growth(self.users.collection),
        }
