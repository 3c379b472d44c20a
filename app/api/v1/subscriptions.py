"""
Subscription API endpoints
"""
import uuid
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.config import get_settings
from app.infrastructure.db.models import SubscriptionModel
from app.application.subscriptions import (
    CreateSubscriptionUseCase, GetSubscriptionUseCase, UpdateSubscriptionUseCase,
    DeleteSubscriptionUseCase, ListSubscriptionsQuery, TotalForPeriodQuery,
    SubscriptionNotFound,
)
from app.utils.validation import parse_int_or_default


router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


# === Request/Response models ===

class CreateSubscriptionRequest(BaseModel):
    service_name: str
    price: int  # smallest currency unit per month
    user_id: str  # UUID
    start_date: str  # MM-YYYY
    end_date: Optional[str] = None  # MM-YYYY, null = still active


class UpdateSubscriptionRequest(BaseModel):
    """Only the fields sent are changed; end_date "" or null clears it"""
    service_name: Optional[str] = None
    price: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class SubscriptionResponse(BaseModel):
    id: uuid.UUID
    service_name: str
    price: int
    user_id: uuid.UUID
    start_date: date
    end_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TotalResponse(BaseModel):
    total: int


def _to_response(sub: SubscriptionModel) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=sub.id,
        service_name=sub.service_name,
        price=sub.price,
        user_id=sub.user_id,
        start_date=sub.start_date,
        end_date=sub.end_date,
        created_at=sub.created_at,
        updated_at=sub.updated_at,
    )


# === Endpoints ===

@router.post("", response_model=SubscriptionResponse, status_code=201)
def create_subscription(
    req: CreateSubscriptionRequest,
    db: Session = Depends(get_db)
):
    """Создать подписку"""
    try:
        sub = CreateSubscriptionUseCase(db).execute(
            service_name=req.service_name,
            price=req.price,
            user_id=req.user_id,
            start_date=req.start_date,
            end_date=req.end_date,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _to_response(sub)


@router.get("", response_model=list[SubscriptionResponse])
def list_subscriptions(
    db: Session = Depends(get_db),
    user_id: Optional[str] = None,
    service_name: Optional[str] = None,
    from_month: Optional[str] = Query(None, alias="from"),
    to_month: Optional[str] = Query(None, alias="to"),
    limit: Optional[str] = None,
    offset: Optional[str] = None,
):
    """Список подписок; from/to (MM-YYYY) ограничивают только start_date"""
    settings = get_settings()
    query = ListSubscriptionsQuery(
        db,
        default_limit=settings.DEFAULT_LIST_LIMIT,
        max_limit=settings.MAX_LIST_LIMIT,
    )
    try:
        items = query.execute(
            user_id=user_id,
            service_name=service_name,
            start_from=from_month,
            start_to=to_month,
            limit=parse_int_or_default(limit, settings.DEFAULT_LIST_LIMIT),
            offset=parse_int_or_default(offset, 0),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return [_to_response(s) for s in items]


@router.get("/total", response_model=TotalResponse)
def total_for_period(
    db: Session = Depends(get_db),
    from_month: Optional[str] = Query(None, alias="from"),
    to_month: Optional[str] = Query(None, alias="to"),
    user_id: Optional[str] = None,
    service_name: Optional[str] = None,
):
    """Суммарная стоимость подписок за период (по месяцам пересечения)"""
    try:
        total = TotalForPeriodQuery(db).execute(
            from_month=from_month,
            to_month=to_month,
            user_id=user_id,
            service_name=service_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return TotalResponse(total=total)


@router.get("/{sub_id}", response_model=SubscriptionResponse)
def get_subscription(
    sub_id: str,
    db: Session = Depends(get_db)
):
    try:
        sub = GetSubscriptionUseCase(db).execute(sub_id)
    except SubscriptionNotFound:
        raise HTTPException(status_code=404, detail="not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _to_response(sub)


@router.put("/{sub_id}", response_model=SubscriptionResponse)
def update_subscription(
    sub_id: str,
    req: UpdateSubscriptionRequest,
    db: Session = Depends(get_db)
):
    """Частичное обновление подписки"""
    changes = req.model_dump(exclude_unset=True)
    try:
        sub = UpdateSubscriptionUseCase(db).execute(sub_id, **changes)
    except SubscriptionNotFound:
        raise HTTPException(status_code=404, detail="not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _to_response(sub)


@router.delete("/{sub_id}")
def delete_subscription(
    sub_id: str,
    db: Session = Depends(get_db)
):
    try:
        DeleteSubscriptionUseCase(db).execute(sub_id)
    except SubscriptionNotFound:
        raise HTTPException(status_code=404, detail="not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"status": "deleted"}
