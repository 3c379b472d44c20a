"""
Subscription repository - explicit query per access shape
(point lookup, filtered list, candidate selection, aggregate sum)
"""
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import Integer, and_, case, cast, extract, func, literal
from sqlalchemy.orm import Query, Session

from app.domain.month import month_index
from app.domain.subscription import MonthWindow
from app.infrastructure.db.models import SubscriptionModel


def _month_idx(column):
    """SQL counterpart of app.domain.month.month_index (NULL stays NULL)"""
    return (
        cast(extract("year", column), Integer) * 12
        + cast(extract("month", column), Integer)
        - 1
    )


class SubscriptionRepository:
    """
    Repository для таблицы subscriptions

    Does not commit: the calling use case owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- point access -------------------------------------------------------

    def add(self, sub: SubscriptionModel) -> SubscriptionModel:
        self.db.add(sub)
        self.db.flush()
        return sub

    def get(self, sub_id: uuid.UUID) -> Optional[SubscriptionModel]:
        return self.db.get(SubscriptionModel, sub_id)

    def delete(self, sub: SubscriptionModel) -> None:
        self.db.delete(sub)
        self.db.flush()

    # --- listing ------------------------------------------------------------

    def list(
        self,
        user_id: Optional[uuid.UUID] = None,
        service_name: Optional[str] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[SubscriptionModel]:
        """
        Filtered page of subscriptions.

        start_from / start_to bound start_date only (not the period overlap).
        Newest start first; rows without created_at go last.
        """
        q = self._filtered(user_id, service_name)
        if start_from is not None:
            q = q.filter(SubscriptionModel.start_date >= start_from)
        if start_to is not None:
            q = q.filter(SubscriptionModel.start_date <= start_to)

        return (
            q.order_by(
                SubscriptionModel.start_date.desc(),
                SubscriptionModel.created_at.desc().nulls_last(),
            )
            .limit(limit)
            .offset(offset)
            .all()
        )

    # --- aggregation --------------------------------------------------------

    def select_candidates(
        self,
        window: MonthWindow,
        user_id: Optional[uuid.UUID] = None,
        service_name: Optional[str] = None,
    ) -> List[SubscriptionModel]:
        """Subscriptions whose [start, end-or-window-end] interval meets the window"""
        q = self._filtered(user_id, service_name).filter(self._candidate_clause(window))
        return q.all()

    def total_for_period(
        self,
        window: MonthWindow,
        user_id: Optional[uuid.UUID] = None,
        service_name: Optional[str] = None,
    ) -> int:
        """
        SUM(price * overlap_months) over all candidates, in one SELECT.

        Month arithmetic is done on month indexes (year * 12 + month - 1) so
        the same statement runs on PostgreSQL and SQLite.
        """
        from_idx = month_index(window.from_month)
        to_idx = month_index(window.to_month)

        start_idx = _month_idx(SubscriptionModel.start_date)
        end_idx = func.coalesce(_month_idx(SubscriptionModel.end_date), to_idx)

        overlap_start = case((start_idx > from_idx, start_idx), else_=literal(from_idx))
        overlap_end = case((end_idx < to_idx, end_idx), else_=literal(to_idx))
        months = overlap_end - overlap_start + 1
        amount = case((months > 0, SubscriptionModel.price * months), else_=literal(0))

        q = self._filtered(
            user_id, service_name, self.db.query(func.coalesce(func.sum(amount), 0))
        ).filter(self._candidate_clause(window))

        total = q.scalar()
        return int(total or 0)

    # --- helpers ------------------------------------------------------------

    def _filtered(
        self,
        user_id: Optional[uuid.UUID],
        service_name: Optional[str],
        q: Optional[Query] = None,
    ) -> Query:
        if q is None:
            q = self.db.query(SubscriptionModel)
        if user_id is not None:
            q = q.filter(SubscriptionModel.user_id == user_id)
        if service_name:
            q = q.filter(SubscriptionModel.service_name == service_name)
        return q

    @staticmethod
    def _candidate_clause(window: MonthWindow):
        from_idx = month_index(window.from_month)
        to_idx = month_index(window.to_month)
        start_idx = _month_idx(SubscriptionModel.start_date)
        end_idx = func.coalesce(_month_idx(SubscriptionModel.end_date), to_idx)
        return and_(start_idx <= to_idx, end_idx >= from_idx)
