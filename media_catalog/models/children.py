"""
Child records: music tracks (of a Music album) and series episodes.

Children have no soft-delete flag; deleting them removes the row. The
natural keys below are the upsert conflict targets.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from media_catalog.db.base import Base, CommonTableAttributes, String20, String64, String255


class MusicTrack(Base, CommonTableAttributes):
    __tablename__ = "music_tracks"
    __table_args__ = (
        UniqueConstraint("album_id", "track_number", name="uq_music_tracks_album_id_track_number"),
    )

    album_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("music.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    track_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String255, nullable=False)
    artist: Mapped[Optional[str]] = mapped_column(String255)
    duration: Mapped[Optional[int]] = mapped_column(Integer)
    file_path: Mapped[Optional[str]] = mapped_column(Text)
    file_type: Mapped[Optional[str]] = mapped_column(String20)
    sha256_hash: Mapped[Optional[str]] = mapped_column(String64)


class SeriesEpisode(Base, CommonTableAttributes):
    __tablename__ = "series_episodes"
    __table_args__ = (
        UniqueConstraint(
            "series_id",
            "season_number",
            "episode_number",
            name="uq_series_episodes_series_id_season_episode",
        ),
    )

    series_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("series.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    season_number: Mapped[int] = mapped_column(Integer, nullable=False)
    episode_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String255)
    overview: Mapped[Optional[str]] = mapped_column(Text)
    air_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    runtime: Mapped[Optional[int]] = mapped_column(Integer)
    magnet: Mapped[Optional[str]] = mapped_column(Text)
    quality: Mapped[Optional[str]] = mapped_column(String20)
    size: Mapped[Optional[int]] = mapped_column(BigInteger)
    file_type: Mapped[Optional[str]] = mapped_column(String20)
    sha256_hash: Mapped[Optional[str]] = mapped_column(String64)
