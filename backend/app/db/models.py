from typing import Any, List, Optional
from datetime import datetime
from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel, Session, select


class ActivitiesSnapshot(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    week_start_date: datetime = Field(index=True)
    week_end_date: datetime = Field(index=True)
    fetched_at: datetime = Field(default_factory=datetime.now)
    source: str  # "generation" or "multi_source"
    attempts: int = 1

    # Stored in the camelCase wire shape so they can be returned as-is
    categories: List[Any] = Field(default_factory=list, sa_column=Column(JSON))
    planning_tips: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    weather_forecast: Optional[List[Any]] = Field(default=None, sa_column=Column(JSON))

    raw_response: Optional[str] = None

    @classmethod
    def latest_for(cls, session: Session, moment: datetime) -> Optional["ActivitiesSnapshot"]:
        """Most recently fetched snapshot whose week covers `moment`."""
        statement = (
            select(cls)
            .where(cls.week_start_date <= moment)
            .where(cls.week_end_date >= moment)
            .order_by(cls.fetched_at.desc())
        )
        return session.exec(statement).first()


class Subscriber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=datetime.now)
