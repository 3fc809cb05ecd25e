"""Database persistence for the grab queue."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from models import QueueRecord, generate_uuid7

from .queue import Channel, QueueItem


class QueuePersistenceError(RuntimeError):
    """Raised when reading or writing the queue fails."""


def _to_record(item: QueueItem) -> QueueRecord:
    return QueueRecord(
        id=generate_uuid7(),
        channel=item.channel.to_dict(),
        channel_xmltv_id=item.channel.xmltv_id,
        site=item.channel.site,
        site_id=item.channel.site_id,
        lang=item.channel.lang,
        date=item.date,
        config_path=item.config_path,
        groups=list(item.groups),
        cluster_id=item.cluster_id,
        error=item.error,
    )


def _from_record(record: QueueRecord) -> QueueItem:
    channel = record.channel or {}
    return QueueItem(
        channel=Channel(
            lang=channel.get("lang", record.lang),
            xmltv_id=channel.get("xmltv_id", record.channel_xmltv_id),
            site_id=channel.get("site_id", record.site_id),
            site=channel.get("site", record.site),
        ),
        date=record.date,
        config_path=record.config_path,
        groups=list(record.groups or []),
        cluster_id=record.cluster_id,
        error=record.error,
    )


class QueuePersistence:
    """Reset-and-reload storage of queue items."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def reset(self) -> int:
        try:
            with self._session_factory() as session:
                removed = self._reset(session)
                session.commit()
                return removed
        except Exception as exc:  # pragma: no cover - failure path
            raise QueuePersistenceError(str(exc)) from exc

    def insert(self, items: Iterable[QueueItem]) -> int:
        try:
            with self._session_factory() as session:
                inserted = self._insert(session, items)
                session.commit()
                return inserted
        except Exception as exc:  # pragma: no cover - failure path
            raise QueuePersistenceError(str(exc)) from exc

    def replace(self, items: Iterable[QueueItem]) -> int:
        """Drop the current queue and store ``items`` in one transaction."""

        try:
            with self._session_factory() as session:
                self._reset(session)
                inserted = self._insert(session, items)
                session.commit()
                return inserted
        except Exception as exc:
            raise QueuePersistenceError(str(exc)) from exc

    def load(self, cluster_id: int | None = None) -> list[QueueItem]:
        statement = select(QueueRecord).order_by(QueueRecord.channel_xmltv_id, QueueRecord.date)
        if cluster_id is not None:
            statement = statement.where(QueueRecord.cluster_id == cluster_id)
        try:
            with self._session_factory() as session:
                return [_from_record(record) for record in session.scalars(statement)]
        except Exception as exc:  # pragma: no cover - failure path
            raise QueuePersistenceError(str(exc)) from exc

    def cluster_sizes(self) -> dict[int, int]:
        statement = (
            select(QueueRecord.cluster_id, func.count())
            .group_by(QueueRecord.cluster_id)
            .order_by(QueueRecord.cluster_id)
        )
        try:
            with self._session_factory() as session:
                return {
                    cluster_id: count
                    for cluster_id, count in session.execute(statement)
                    if cluster_id is not None
                }
        except Exception as exc:  # pragma: no cover - failure path
            raise QueuePersistenceError(str(exc)) from exc

    @staticmethod
    def _reset(session: Session) -> int:
        result = session.execute(delete(QueueRecord))
        return result.rowcount or 0

    @staticmethod
    def _insert(session: Session, items: Iterable[QueueItem]) -> int:
        records = [_to_record(item) for item in items]
        session.add_all(records)
        session.flush()
        return len(records)
