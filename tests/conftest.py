"""Shared fixtures: an in-memory MongoDB and the repositories built on it."""

import mongomock
import pytest
from fastapi.testclient import TestClient

from analytics import AnalyticsAggregator
from artworks import ArtworkRepository
from database import ensure_indexes
from favorites import FavoriteRegistry
from main import create_app
from reports import ReportLedger
from users import UserDirectory


@pytest.fixture
def db():
    database = mongomock.MongoClient()["artify_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def users(db):
    return UserDirectory(db)


@pytest.fixture
def favorites(db):
    return FavoriteRegistry(db)


@pytest.fixture
def reports(db):
    return ReportLedger(db)


@pytest.fixture
def artworks(db, users, favorites, reports):
    return ArtworkRepository(db, users=users, favorites=favorites, reports=reports)


@pytest.fixture
def analytics(artworks, users, reports):
    return AnalyticsAggregator(artworks, users, reports)


@pytest.fixture
def make_art(artworks):
    """Create an artwork with sensible defaults; keyword arguments override them."""
    def _make(**overrides):
        fields = {
            "title": "Sunset",
            "image": "https://img.example/sunset.png",
            "userName": "Ana",
            "userEmail": "ana@x.com",
        }
        fields.update(overrides)
        return artworks.create(fields)
    return _make


@pytest.fixture
def client(db):
    app = create_app(db)
    with TestClient(app) as test_client:
        yield test_client
