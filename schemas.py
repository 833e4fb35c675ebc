"""
Database Schemas

MongoDB collection schemas for the art catalog, as Pydantic models.
Field names are the stored document keys, which are also the JSON wire names.
- Artwork -> "arts"
- User -> "users"
- Favorite -> "favorites"
- Report -> "reports"

The *In / *Update models are request bodies. Their fields are optional on
purpose: required-field checks happen in the repositories so a missing field
answers 400 instead of a framework validation error.
"""

from datetime import datetime
from typing import Optional, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field


class Artwork(BaseModel):
    image: str
    title: str
    category: str = "Uncategorized"
    medium: str = ""
    description: str = ""
    dimensions: str = ""
    price: Optional[float] = Field(None, description="None means no price set")
    visibility: str = Field("Public", description="Public | Private")
    featured: bool = False
    userName: str = Field(..., description="Author display name at creation time")
    userEmail: str = Field(..., description="Lower-cased author email")
    artistEmail: str = ""
    artistPhoto: str = ""
    likes: int = Field(0, ge=0)
    createdAt: datetime
    updatedAt: datetime


class User(BaseModel):
    email: str = Field(..., description="Lower-cased, unique")
    displayName: Optional[str] = None
    photoURL: Optional[str] = None
    role: str = Field("User", description="User | Admin")
    createdAt: Optional[datetime] = None
    lastLogin: Optional[datetime] = None


class Favorite(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    artworkId: ObjectId = Field(..., description="Weak reference to arts._id")
    userEmail: str
    createdAt: Optional[datetime] = None


class Report(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    artworkId: ObjectId = Field(..., description="Weak reference to arts._id")
    artTitle: Optional[str] = None
    reporterEmail: str
    reason: str
    status: str = "pending"
    createdAt: Optional[datetime] = None


# Request bodies

class ArtworkIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image: Optional[str] = None
    title: Optional[str] = None
    category: Optional[str] = None
    medium: Optional[str] = None
    description: Optional[str] = None
    dimensions: Optional[str] = None
    price: Optional[Union[float, str]] = None
    visibility: Optional[str] = None
    featured: Optional[bool] = None
    userName: Optional[str] = None
    authorName: Optional[str] = None
    artistName: Optional[str] = None
    userEmail: Optional[str] = None
    authorEmail: Optional[str] = None
    artistEmail: Optional[str] = None
    email: Optional[str] = None
    artistPhoto: Optional[str] = None
    authorPhoto: Optional[str] = None
    userPhoto: Optional[str] = None


class ArtworkUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image: Optional[str] = None
    title: Optional[str] = None
    category: Optional[str] = None
    medium: Optional[str] = None
    description: Optional[str] = None
    dimensions: Optional[str] = None
    price: Optional[Union[float, str]] = None
    visibility: Optional[str] = None
    featured: Optional[bool] = None
    userName: Optional[str] = None
    artistPhoto: Optional[str] = None


class FavoriteIn(BaseModel):
    artworkId: Optional[str] = None
    userEmail: Optional[str] = None


class UserSync(BaseModel):
    email: Optional[str] = None
    displayName: Optional[str] = None
    photoURL: Optional[str] = None


class RoleUpdate(BaseModel):
    role: Optional[str] = None


class ReportIn(BaseModel):
    artworkId: Optional[str] = None
    reporterEmail: Optional[str] = None
    reason: Optional[str] = None
    artTitle: Optional[str] = None
