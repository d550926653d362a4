"""
URL storage strategies using Strategy Pattern.

The service layer only talks to `URLStorageStrategy`; the relational
implementation below works on any SQLAlchemy backend (PostgreSQL in
production, SQLite for development and tests).

All methods are synchronous (blocking DB I/O). The service offloads them
to a worker thread so they never block the event loop.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shortlink_app.database.connection import Database
from shortlink_app.exceptions import (
    AliasExistsError,
    AliasTooLongError,
    StorageError,
    URLNotFoundError,
)
from shortlink_app.models.url import ClickLog, ShortURL, MAX_ALIAS_LENGTH
from shortlink_app.schemas.url import StatAgent, StatDay, StatMonth
from shortlink_app.storage.sql import is_unique_violation, truncate_datetime

logger = logging.getLogger(__name__)


class URLStorageStrategy(ABC):
    """
    Abstract base class for URL storage strategies.

    Owns ShortURL and ClickLog records. Aggregates return empty lists
    (or 0) when nothing matches: "no data" is never an error.
    """

    @abstractmethod
    def save_url(self, url: ShortURL) -> int:
        """
        Insert a new alias mapping.

        Args:
            url: ShortURL with original_url and alias set

        Returns:
            The store-assigned id

        Raises:
            AliasTooLongError: alias longer than 64 characters (nothing inserted)
            AliasExistsError: alias already taken
            StorageError: any other database failure
        """
        pass

    @abstractmethod
    def get_url(self, alias: str) -> ShortURL:
        """
        Look up a mapping by exact alias.

        Raises:
            URLNotFoundError: no row matches
        """
        pass

    @abstractmethod
    def save_user_click(self, click: ClickLog) -> None:
        """Append a click event. Database errors propagate unmodified."""
        pass

    @abstractmethod
    def get_analytics(self, alias: str) -> List[ClickLog]:
        """Click events for an alias, newest first"""
        pass

    @abstractmethod
    def count_clicks(self, alias: str) -> int:
        pass

    @abstractmethod
    def statistic_day(self, alias: str) -> List[StatDay]:
        """Clicks per calendar day, latest day first"""
        pass

    @abstractmethod
    def statistic_month(self, alias: str) -> List[StatMonth]:
        """Clicks per calendar month, latest month first"""
        pass

    @abstractmethod
    def statistic_agent(self, alias: str) -> List[StatAgent]:
        """Clicks per user agent, ordered by user agent descending"""
        pass


class SQLURLStorage(URLStorageStrategy):
    """
    Relational implementation backed by a primary/replica `Database`.

    Writes go to the primary, reads to a replica when one is configured.
    No retries and no backoff anywhere.
    """

    def __init__(self, db: Database):
        self.db = db
        self.dialect = db.primary.dialect.name

    def save_url(self, url: ShortURL) -> int:
        if len(url.alias) > MAX_ALIAS_LENGTH:
            raise AliasTooLongError(
                f"alias too long (max {MAX_ALIAS_LENGTH} characters)"
            )

        try:
            with self.db.writer() as session:
                session.add(url)
                session.flush()
                url_id = url.id
        except IntegrityError as e:
            if is_unique_violation(e):
                raise AliasExistsError("alias already exists") from e
            raise StorageError(str(e.orig)) from e
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

        logger.debug("Saved short URL", extra={"alias": url.alias, "url_id": url_id})
        return url_id

    def get_url(self, alias: str) -> ShortURL:
        with self.db.reader() as session:
            url = session.scalars(
                select(ShortURL).where(ShortURL.alias == alias)
            ).first()

        if url is None:
            raise URLNotFoundError(f"url not found: {alias}")
        return url

    def save_user_click(self, click: ClickLog) -> None:
        with self.db.writer() as session:
            session.add(click)

    def get_analytics(self, alias: str) -> List[ClickLog]:
        stmt = (
            select(ClickLog)
            .join(ShortURL, ShortURL.id == ClickLog.url_id)
            .where(ShortURL.alias == alias)
            .order_by(ClickLog.clicked_at.desc(), ClickLog.id.desc())
        )
        with self.db.reader() as session:
            return list(session.scalars(stmt).all())

    def count_clicks(self, alias: str) -> int:
        stmt = (
            select(func.count(ClickLog.id))
            .join(ShortURL, ShortURL.id == ClickLog.url_id)
            .where(ShortURL.alias == alias)
        )
        with self.db.reader() as session:
            return session.scalar(stmt) or 0

    def statistic_day(self, alias: str) -> List[StatDay]:
        rows = self._grouped_by_period("day", alias)
        return [StatDay(day=period, count=count) for period, count in rows]

    def statistic_month(self, alias: str) -> List[StatMonth]:
        rows = self._grouped_by_period("month", alias)
        return [StatMonth(month=period, count=count) for period, count in rows]

    def statistic_agent(self, alias: str) -> List[StatAgent]:
        stmt = (
            select(ClickLog.user_agent, func.count(ClickLog.id))
            .join(ShortURL, ShortURL.id == ClickLog.url_id)
            .where(ShortURL.alias == alias)
            .group_by(ClickLog.user_agent)
            .order_by(ClickLog.user_agent.desc())
        )
        with self.db.reader() as session:
            rows = session.execute(stmt).all()
        return [StatAgent(user_agent=agent or "", count=count) for agent, count in rows]

    def _grouped_by_period(self, unit: str, alias: str):
        period = truncate_datetime(unit, ClickLog.clicked_at, self.dialect)
        stmt = (
            select(period, func.count(ClickLog.id))
            .join(ShortURL, ShortURL.id == ClickLog.url_id)
            .where(ShortURL.alias == alias)
            .group_by(period)
            .order_by(period.desc())
        )
        with self.db.reader() as session:
            return session.execute(stmt).all()
