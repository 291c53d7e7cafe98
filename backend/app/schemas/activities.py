from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Event(CamelModel):
    name: str
    date: str
    time: str
    venue: str
    ticket_price: str = ""
    ticket_link: str = ""
    description: str = ""


class Category(CamelModel):
    name: str
    events: List[Event] = Field(default_factory=list)


class ExtractionResult(CamelModel):
    categories: List[Category] = Field(default_factory=list)
    planning_tips: List[str] = Field(default_factory=list)

    @property
    def total_events(self) -> int:
        return sum(len(category.events) for category in self.categories)


class Temperature(BaseModel):
    min: float
    max: float


class WeatherDay(BaseModel):
    date: str  # "Monday, June 23"
    temp: Temperature
    weather: str = ""
    description: str = ""
    precipitation: float = 0


class ActivitiesPayload(CamelModel):
    """Shape persisted for a week and returned by the activities endpoint."""
    week_start_date: datetime
    week_end_date: datetime
    fetched_at: Optional[datetime] = None
    categories: List[Category] = Field(default_factory=list)
    planning_tips: List[str] = Field(default_factory=list)
    weather_forecast: Optional[List[WeatherDay]] = None
    source: Optional[str] = None


class DateRangeResponse(CamelModel):
    start_date: datetime
    end_date: datetime
    formatted_range: str


class SubscribeRequest(BaseModel):
    email: str = ""
