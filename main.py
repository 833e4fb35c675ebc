import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from analytics import AnalyticsAggregator
from artworks import DEFAULT_PAGE_SIZE, ArtworkRepository
from database import connect, ensure_indexes
from errors import CatalogError
from favorites import FavoriteRegistry
from reports import ReportLedger
from schemas import ArtworkIn, ArtworkUpdate, FavoriteIn, ReportIn, RoleUpdate, UserSync
from users import UserDirectory

logger = logging.getLogger(__name__)


def create_app(db: Optional[Database] = None) -> FastAPI:
    """Build the API around ``db``, or around ``database.connect()`` at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.db is None:
            attach(app, connect())
        try:
            ensure_indexes(app.state.db)
        except PyMongoError:
            logger.exception("Could not ensure indexes")
        logger.info("Artify API ready on database %s", app.state.db.name)
        yield

    app = FastAPI(title="Artify API", lifespan=lifespan)
    app.state.db = None
    if db is not None:
        attach(app, db)

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(PyMongoError)
    async def store_error_handler(request: Request, exc: PyMongoError):
        logger.exception("Store error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    register_routes(app)
    return app


def attach(app: FastAPI, db: Database) -> None:
    """Build the repositories once and keep them on the application."""
    users = UserDirectory(db)
    favorites = FavoriteRegistry(db)
    reports = ReportLedger(db)
    artworks = ArtworkRepository(db, users=users, favorites=favorites, reports=reports)
    app.state.db = db
    app.state.users = users
    app.state.favorites = favorites
    app.state.reports = reports
    app.state.artworks = artworks
    app.state.analytics = AnalyticsAggregator(artworks, users, reports)


# Dependencies

def get_artworks(request: Request) -> ArtworkRepository:
    return request.app.state.artworks


def get_favorites(request: Request) -> FavoriteRegistry:
    return request.app.state.favorites


def get_users(request: Request) -> UserDirectory:
    return request.app.state.users


def get_reports(request: Request) -> ReportLedger:
    return request.app.state.reports


def get_analytics(request: Request) -> AnalyticsAggregator:
    return request.app.state.analytics


def register_routes(app: FastAPI) -> None:
    @app.get("/")
    def read_root():
        return {"message": "Artify API"}

    @app.get("/test")
    def test_database(request: Request):
        db = request.app.state.db
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
            "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
            "connection_status": "Not Connected",
            "collections": []
        }
        try:
            if db is not None:
                response["database"] = "✅ Available"
                response["connection_status"] = "Connected"
                response["collections"] = db.list_collection_names()
                response["database"] = "✅ Connected & Working"
        except PyMongoError as e:
            response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
        return response

    # Artworks
    @app.post("/arts", status_code=201)
    def create_art(data: ArtworkIn, artworks: ArtworkRepository = Depends(get_artworks)):
        return artworks.create(data.model_dump(exclude_none=True))

    @app.get("/arts")
    def list_arts(search: Optional[str] = None, category: Optional[str] = None, email: Optional[str] = None,
                  page: int = 1, limit: int = DEFAULT_PAGE_SIZE, sort: Optional[str] = None,
                  artworks: ArtworkRepository = Depends(get_artworks)):
        return artworks.search(search=search, category=category, email=email, page=page, limit=limit, sort=sort)

    @app.get("/arts/featured")
    def featured_arts(artworks: ArtworkRepository = Depends(get_artworks)):
        return artworks.featured()

    @app.get("/arts/{art_id}")
    def get_art(art_id: str, artworks: ArtworkRepository = Depends(get_artworks)):
        return artworks.get_by_id(art_id)

    @app.patch("/arts/{art_id}")
    def update_art(art_id: str, data: ArtworkUpdate, artworks: ArtworkRepository = Depends(get_artworks)):
        return artworks.update(art_id, data.model_dump(exclude_unset=True))

    @app.patch("/arts/{art_id}/like")
    def like_art(art_id: str, artworks: ArtworkRepository = Depends(get_artworks)):
        return {"likes": artworks.like(art_id)}

    @app.patch("/arts/{art_id}/unlike")
    def unlike_art(art_id: str, artworks: ArtworkRepository = Depends(get_artworks)):
        return {"likes": artworks.unlike(art_id)}

    @app.delete("/arts/{art_id}")
    def delete_art(art_id: str, artworks: ArtworkRepository = Depends(get_artworks)):
        return artworks.delete(art_id)

    @app.get("/my-arts")
    def my_arts(email: Optional[str] = None, artworks: ArtworkRepository = Depends(get_artworks)):
        return artworks.by_author(email)

    # Favorites
    @app.post("/favorites", status_code=201)
    def add_favorite(data: FavoriteIn, favorites: FavoriteRegistry = Depends(get_favorites)):
        return favorites.add(data.artworkId, data.userEmail)

    @app.get("/favorites")
    def list_favorites(email: Optional[str] = None, favorites: FavoriteRegistry = Depends(get_favorites)):
        return favorites.list_for_user(email)

    @app.delete("/favorites/{favorite_id}")
    def remove_favorite(favorite_id: str, favorites: FavoriteRegistry = Depends(get_favorites)):
        return favorites.remove(favorite_id)

    # Users
    @app.post("/users")
    def sync_user(data: UserSync, users: UserDirectory = Depends(get_users)):
        return users.sync_on_login(data.email, data.displayName, data.photoURL)

    @app.get("/users")
    def list_users(users: UserDirectory = Depends(get_users)):
        return users.list_all()

    @app.get("/users/admin/{email}")
    def check_admin(email: str, users: UserDirectory = Depends(get_users)):
        return {"admin": users.is_admin(email)}

    @app.patch("/users/{user_id}/role")
    def set_role(user_id: str, data: RoleUpdate, users: UserDirectory = Depends(get_users)):
        return users.set_role(user_id, data.role)

    @app.delete("/users/{user_id}")
    def delete_user(user_id: str, users: UserDirectory = Depends(get_users)):
        return users.delete(user_id)

    # Reports
    @app.post("/reports", status_code=201)
    def submit_report(data: ReportIn, reports: ReportLedger = Depends(get_reports)):
        return reports.submit(data.artworkId, data.reporterEmail, data.reason, data.artTitle)

    @app.get("/reports")
    def list_reports(reports: ReportLedger = Depends(get_reports)):
        return reports.list_all()

    @app.delete("/reports/{report_id}")
    def resolve_report(report_id: str, reports: ReportLedger = Depends(get_reports)):
        return reports.resolve(report_id)

    # Admin
    @app.get("/admin/stats")
    def admin_stats(analytics: AnalyticsAggregator = Depends(get_analytics)):
        return analytics.stats()


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
