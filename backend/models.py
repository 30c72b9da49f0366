"""Value types shared by the venue services and routes."""

from pydantic import BaseModel, ConfigDict, Field

NO_NAME = "(no name)"
UNKNOWN_CATEGORY = "unknown"


# --- Location descriptors ---
class AreaLocation(BaseModel):
    """A named administrative area, resolved by Overpass into a boundary."""

    model_config = ConfigDict(frozen=True)

    name: str


class PointLocation(BaseModel):
    """A point with a search radius in metres."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    radius_m: int = 3000


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    title: str
    country: str
    descriptor: AreaLocation | PointLocation


# --- Normalized upstream results ---
# Wire names (type/lat/lon) are the ones the frontend has always consumed.
class Place(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    category: str = Field(UNKNOWN_CATEGORY, serialization_alias="type")
    name: str = NO_NAME
    latitude: float | None = Field(None, serialization_alias="lat")
    longitude: float | None = Field(None, serialization_alias="lon")
    website: str | None = None


class QueryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int
    places: tuple[Place, ...] = ()

    @classmethod
    def from_places(cls, places) -> "QueryResult":
        places = tuple(places)
        return cls(count=len(places), places=places)
