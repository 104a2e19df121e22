# radiowalk/db/models/stations.py
import enum
import uuid
from datetime import datetime

from sqlalchemy import String, Text, Float, Integer, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from radiowalk.db.base import Base
from radiowalk.db.models_user import User, now_utc


class StationType(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class Station(Base):
    __tablename__ = "stations"
    __table_args__ = (
        Index("ix_stations_type_lat_lng", "type", "latitude", "longitude"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    type: Mapped[StationType] = mapped_column(
        Enum(StationType, name="station_type"), default=StationType.PUBLIC, nullable=False
    )

    tags: Mapped[str | None] = mapped_column(Text, nullable=True)
    stream_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    stream_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    favicon: Mapped[str | None] = mapped_column(Text, nullable=True)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, onupdate=now_utc, nullable=False)

    owner: Mapped[User] = relationship(User, foreign_keys=[owner_id])
    shares: Mapped[list["StationShare"]] = relationship(
        "StationShare", back_populates="station", cascade="all, delete-orphan"
    )
    # read side of the sharing relation; writes go through StationShare rows
    shared_users: Mapped[list[User]] = relationship(
        User, secondary="station_shares", viewonly=True, order_by=User.username
    )


class StationShare(Base):
    """One (station, user) grant of read access to a private station."""

    __tablename__ = "station_shares"

    station_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("stations.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_utc, nullable=False)

    station: Mapped[Station] = relationship(Station, back_populates="shares")
