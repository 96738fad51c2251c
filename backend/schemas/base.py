from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# Wire format is camelCase (startTime, siteId, ...); Python code uses snake_case
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def to_naive_utc(value: datetime) -> datetime:
    # Stored instants are naive UTC; aware input (e.g. "...Z") is converted first
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
