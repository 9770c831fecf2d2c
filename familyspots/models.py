"""ORM mappings for the columns the search layer reads.

Tables and column names follow the existing schema (quoted camelCase).
``search_vector`` is a PostgreSQL ``tsvector`` maintained by the database
and is deliberately not mapped here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from familyspots.database import Base


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class Spot(Base):
    __tablename__ = "Spot"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    type: Mapped[str | None] = mapped_column(String, nullable=True)
    name: Mapped[str] = mapped_column(String)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    tags: Mapped[str | None] = mapped_column(Text, nullable=True)
    open_hours: Mapped[str | None] = mapped_column("openHours", String, nullable=True)
    price_band: Mapped[str | None] = mapped_column("priceBand", String, nullable=True)
    images: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True))

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "city": self.city,
            "address": self.address,
            "lat": self.lat,
            "lng": self.lng,
            "phone": self.phone,
            "tags": self.tags,
            "openHours": self.open_hours,
            "priceBand": self.price_band,
            "images": self.images,
            "rating": self.rating,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Event(Base):
    __tablename__ = "Event"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    venue: Mapped[str | None] = mapped_column(String, nullable=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_at: Mapped[datetime] = mapped_column("startAt", DateTime(timezone=True))
    end_at: Mapped[datetime | None] = mapped_column("endAt", DateTime(timezone=True), nullable=True)
    price_band: Mapped[str | None] = mapped_column("priceBand", String, nullable=True)
    tags: Mapped[str | None] = mapped_column(Text, nullable=True)
    images: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str | None] = mapped_column(String, nullable=True)
    url: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, default="public")
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True))

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "city": self.city,
            "venue": self.venue,
            "address": self.address,
            "lat": self.lat,
            "lng": self.lng,
            "startAt": _iso(self.start_at),
            "endAt": _iso(self.end_at),
            "priceBand": self.price_band,
            "tags": self.tags,
            "images": self.images,
            "source": self.source,
            "url": self.url,
            "status": self.status,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
