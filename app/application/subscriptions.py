"""
Subscription use cases: CRUD подписок + расчёт суммы за период.

Модуль работает напрямую с ORM через SubscriptionRepository.
All input is parsed and validated before the store is touched.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.month import parse_month, InvalidMonthFormat
from app.domain.subscription import MonthWindow
from app.infrastructure.db.models import SubscriptionModel
from app.infrastructure.db.subscription_repository import SubscriptionRepository
from app.utils.validation import parse_uuid, validate_price

logger = logging.getLogger(__name__)

_UNSET = object()


class SubscriptionValidationError(ValueError):
    pass


class InvalidIdentifier(SubscriptionValidationError):
    pass


class SubscriptionNotFound(LookupError):
    pass


__all__ = [
    "InvalidMonthFormat",
    "InvalidIdentifier",
    "SubscriptionValidationError",
    "SubscriptionNotFound",
    "CreateSubscriptionUseCase",
    "GetSubscriptionUseCase",
    "UpdateSubscriptionUseCase",
    "DeleteSubscriptionUseCase",
    "ListSubscriptionsQuery",
    "TotalForPeriodQuery",
]


# ============================================================================
# Parsing helpers
# ============================================================================


def _parse_id(value, field: str) -> uuid.UUID:
    try:
        return parse_uuid(value)
    except ValueError as exc:
        raise InvalidIdentifier(f"invalid {field}, expected UUID") from exc


def _parse_month_field(value, field: str):
    try:
        return parse_month(value)
    except InvalidMonthFormat as exc:
        raise InvalidMonthFormat(f"invalid {field}, expected MM-YYYY") from exc


def _parse_end_month(value):
    """None / "" = open-ended"""
    if value is None or value == "":
        return None
    return _parse_month_field(value, "end_date")


def _clean_service_name(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SubscriptionValidationError("service_name must not be empty")
    return value.strip()


def _check_price(value) -> int:
    try:
        return validate_price(value)
    except ValueError as exc:
        raise SubscriptionValidationError(str(exc)) from exc


def _check_period(start, end) -> None:
    if end is not None and end < start:
        raise SubscriptionValidationError("end_date must not be before start_date")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


# ============================================================================
# CRUD
# ============================================================================


class CreateSubscriptionUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SubscriptionRepository(db)

    def execute(
        self,
        service_name: str,
        price: int,
        user_id: str,
        start_date: str,
        end_date: Optional[str] = None,
    ) -> SubscriptionModel:
        name = _clean_service_name(service_name)
        price = _check_price(price)
        start = _parse_month_field(start_date, "start_date")
        end = _parse_end_month(end_date)
        uid = _parse_id(user_id, "user_id")
        _check_period(start, end)

        sub = SubscriptionModel(
            service_name=name,
            price=price,
            user_id=uid,
            start_date=start,
            end_date=end,
        )
        self.repo.add(sub)
        _commit(self.db)
        logger.info("Subscription created id=%s user_id=%s service=%r", sub.id, uid, name)
        return sub


class GetSubscriptionUseCase:
    def __init__(self, db: Session):
        self.repo = SubscriptionRepository(db)

    def execute(self, sub_id: str) -> SubscriptionModel:
        sid = _parse_id(sub_id, "id")
        sub = self.repo.get(sid)
        if sub is None:
            raise SubscriptionNotFound("subscription not found")
        return sub


class UpdateSubscriptionUseCase:
    """
    Partial update: only keys present in `changes` are touched.

    Every provided field is resolved into the full candidate state and
    validated first; the row is modified only after all checks pass, so a
    rejected update leaves it as it was.
    end_date=None or "" makes the subscription open-ended.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = SubscriptionRepository(db)

    def execute(self, sub_id: str, **changes) -> SubscriptionModel:
        sid = _parse_id(sub_id, "id")

        name = _UNSET
        price = _UNSET
        start = _UNSET
        end = _UNSET
        if "service_name" in changes:
            name = _clean_service_name(changes["service_name"])
        if "price" in changes:
            price = _check_price(changes["price"])
        if "start_date" in changes:
            start = _parse_month_field(changes["start_date"], "start_date")
        if "end_date" in changes:
            end = _parse_end_month(changes["end_date"])

        sub = self.repo.get(sid)
        if sub is None:
            raise SubscriptionNotFound("subscription not found")

        new_start = sub.start_date if start is _UNSET else start
        new_end = sub.end_date if end is _UNSET else end
        # period is re-checked only when it is being changed
        if start is not _UNSET or end is not _UNSET:
            _check_period(new_start, new_end)

        if name is not _UNSET:
            sub.service_name = name
        if price is not _UNSET:
            sub.price = price
        sub.start_date = new_start
        sub.end_date = new_end

        _commit(self.db)
        logger.info("Subscription updated id=%s fields=%s", sid, sorted(changes))
        return sub


class DeleteSubscriptionUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SubscriptionRepository(db)

    def execute(self, sub_id: str) -> None:
        sid = _parse_id(sub_id, "id")
        sub = self.repo.get(sid)
        if sub is None:
            raise SubscriptionNotFound("subscription not found")
        self.repo.delete(sub)
        _commit(self.db)
        logger.info("Subscription deleted id=%s", sid)


# ============================================================================
# Queries
# ============================================================================


class ListSubscriptionsQuery:
    """
    Filtered, paginated list.

    start_from / start_to ("MM-YYYY") bound start_date only; this is not the
    overlap semantics of TotalForPeriodQuery.
    """

    def __init__(self, db: Session, default_limit: int = 100, max_limit: int = 1000):
        self.repo = SubscriptionRepository(db)
        self.default_limit = default_limit
        self.max_limit = max_limit

    def execute(
        self,
        user_id: Optional[str] = None,
        service_name: Optional[str] = None,
        start_from: Optional[str] = None,
        start_to: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[SubscriptionModel]:
        uid = _parse_id(user_id, "user_id") if user_id else None
        date_from = _parse_month_field(start_from, "from") if start_from else None
        date_to = _parse_month_field(start_to, "to") if start_to else None

        if not limit or limit < 0:
            limit = self.default_limit
        limit = min(limit, self.max_limit)
        if not offset or offset < 0:
            offset = 0

        return self.repo.list(
            user_id=uid,
            service_name=service_name or None,
            start_from=date_from,
            start_to=date_to,
            limit=limit,
            offset=offset,
        )


class TotalForPeriodQuery:
    """Sum of price * overlapping months for every subscription active in [from, to]"""

    def __init__(self, db: Session):
        self.repo = SubscriptionRepository(db)

    def execute(
        self,
        from_month: Optional[str],
        to_month: Optional[str],
        user_id: Optional[str] = None,
        service_name: Optional[str] = None,
    ) -> int:
        if not from_month or not to_month:
            raise SubscriptionValidationError("from and to are required (MM-YYYY)")
        start = _parse_month_field(from_month, "from")
        end = _parse_month_field(to_month, "to")
        if start > end:
            raise SubscriptionValidationError("from must not be after to")
        uid = _parse_id(user_id, "user_id") if user_id else None

        window = MonthWindow.of(start, end)
        total = self.repo.total_for_period(window, user_id=uid, service_name=service_name or None)
        logger.debug(
            "Total for %s..%s user_id=%s service=%r: %d",
            from_month, to_month, uid, service_name, total,
        )
        return total
