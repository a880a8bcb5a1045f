import datetime as dt
from typing import Annotated, Optional
from pydantic import AfterValidator, BaseModel, Field, ConfigDict, BeforeValidator, field_serializer


def ensure_utc(value: dt.datetime) -> dt.datetime:
    """Mongo hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.UTC)
    return value.astimezone(dt.UTC)


# Standardizes MongoDB ObjectIds to strings
PyObjectId = Annotated[str, BeforeValidator(str)]
UTCDateTime = Annotated[dt.datetime, AfterValidator(ensure_utc)]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class MongoBaseModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra='forbid'
    )

    id: Optional[PyObjectId] = Field(None, alias="_id")
    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)

    # Keep native datetimes for Mongo range queries, ISO strings over JSON
    @field_serializer("created_at", "updated_at", when_used="json")
    def serialize_dt(self, value: dt.datetime):
        return value.isoformat()
