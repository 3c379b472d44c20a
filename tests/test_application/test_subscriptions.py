"""Tests for Subscriptions module: CRUD, list filters, period totals."""
import uuid
from datetime import date, datetime

import pytest

from app.infrastructure.db.models import SubscriptionModel
from app.infrastructure.db.subscription_repository import SubscriptionRepository
from app.application.subscriptions import (
    CreateSubscriptionUseCase, GetSubscriptionUseCase, UpdateSubscriptionUseCase,
    DeleteSubscriptionUseCase, ListSubscriptionsQuery, TotalForPeriodQuery,
    SubscriptionValidationError, SubscriptionNotFound, InvalidIdentifier,
    InvalidMonthFormat,
)
from app.domain.subscription import MonthWindow, total_for_period

USER = "60601fee-2bf1-4721-ae6f-7636e79a0cba"
OTHER = "0b1f6a2e-7c44-4c0e-9d43-2a5d2f3c9e10"


def _create(db, name="Yandex Plus", price=400, user_id=USER, start="07-2025", end=None):
    return CreateSubscriptionUseCase(db).execute(
        service_name=name, price=price, user_id=user_id,
        start_date=start, end_date=end,
    )


def _total(db, from_m, to_m, **filters):
    return TotalForPeriodQuery(db).execute(from_m, to_m, **filters)


# ============================================================================
# Create / Get
# ============================================================================


def test_create_assigns_id_and_normalized_dates(db_session):
    sub = _create(db_session, name="  Yandex Plus ", start="07-2025", end="10-2025")

    assert isinstance(sub.id, uuid.UUID)
    assert sub.service_name == "Yandex Plus"
    assert sub.user_id == uuid.UUID(USER)
    assert sub.start_date == date(2025, 7, 1)
    assert sub.end_date == date(2025, 10, 1)
    assert sub.created_at is not None
    assert sub.updated_at is not None


def test_create_open_ended_with_empty_end(db_session):
    sub = _create(db_session, end="")
    assert sub.end_date is None


def test_create_accepts_zero_price(db_session):
    assert _create(db_session, price=0).price == 0


def test_create_accepts_max_int4_price(db_session):
    assert _create(db_session, price=2**31 - 1).price == 2**31 - 1


def test_create_rejects_bad_input(db_session):
    with pytest.raises(InvalidMonthFormat):
        _create(db_session, start="2025-07")
    with pytest.raises(InvalidMonthFormat):
        _create(db_session, end="13-2025")
    with pytest.raises(InvalidIdentifier):
        _create(db_session, user_id="not-a-uuid")
    with pytest.raises(SubscriptionValidationError):
        _create(db_session, price=-1)
    with pytest.raises(SubscriptionValidationError):
        _create(db_session, price=2**31)
    with pytest.raises(SubscriptionValidationError):
        _create(db_session, name="   ")
    with pytest.raises(SubscriptionValidationError):
        _create(db_session, start="09-2025", end="07-2025")

    assert db_session.query(SubscriptionModel).count() == 0


def test_get_returns_stored_entity(db_session):
    sub = _create(db_session)
    found = GetSubscriptionUseCase(db_session).execute(str(sub.id))
    assert found.id == sub.id


def test_get_unknown_id_not_found(db_session):
    with pytest.raises(SubscriptionNotFound):
        GetSubscriptionUseCase(db_session).execute(str(uuid.uuid4()))


def test_get_malformed_id(db_session):
    with pytest.raises(InvalidIdentifier):
        GetSubscriptionUseCase(db_session).execute("123")


# ============================================================================
# Update / Delete
# ============================================================================


def test_update_changes_only_given_fields(db_session):
    sub = _create(db_session, name="Netflix", price=999, start="01-2025", end="06-2025")

    updated = UpdateSubscriptionUseCase(db_session).execute(str(sub.id), price=1099)

    assert updated.price == 1099
    assert updated.service_name == "Netflix"
    assert updated.start_date == date(2025, 1, 1)
    assert updated.end_date == date(2025, 6, 1)


def test_update_empty_end_date_makes_open_ended(db_session):
    sub = _create(db_session, price=100, start="07-2025", end="07-2025")
    assert _total(db_session, "07-2025", "09-2025") == 100

    UpdateSubscriptionUseCase(db_session).execute(str(sub.id), end_date="")

    assert GetSubscriptionUseCase(db_session).execute(str(sub.id)).end_date is None
    assert _total(db_session, "07-2025", "09-2025") == 300


def test_update_none_end_date_also_clears(db_session):
    sub = _create(db_session, end="12-2025")
    UpdateSubscriptionUseCase(db_session).execute(str(sub.id), end_date=None)
    assert GetSubscriptionUseCase(db_session).execute(str(sub.id)).end_date is None


def test_failed_update_leaves_row_untouched(db_session):
    sub = _create(db_session, name="Spotify", price=299, start="03-2025", end="12-2025")

    with pytest.raises(SubscriptionValidationError):
        UpdateSubscriptionUseCase(db_session).execute(
            str(sub.id), service_name="Spotify Family", price=-5,
        )
    with pytest.raises(InvalidMonthFormat):
        UpdateSubscriptionUseCase(db_session).execute(
            str(sub.id), price=500, end_date="bad",
        )
    # merged state start > existing end
    with pytest.raises(SubscriptionValidationError):
        UpdateSubscriptionUseCase(db_session).execute(
            str(sub.id), price=500, start_date="01-2026",
        )

    db_session.expire_all()
    fresh = GetSubscriptionUseCase(db_session).execute(str(sub.id))
    assert fresh.service_name == "Spotify"
    assert fresh.price == 299
    assert fresh.start_date == date(2025, 3, 1)
    assert fresh.end_date == date(2025, 12, 1)


def test_update_price_on_inverted_stored_row(db_session):
    """Legacy rows with end < start stay editable as long as the period is not touched"""
    broken = _add_raw(
        db_session, "legacy", date(2025, 3, 1), datetime(2025, 1, 1), end=date(2025, 1, 1),
    )
    use_case = UpdateSubscriptionUseCase(db_session)

    updated = use_case.execute(str(broken.id), price=5, service_name="legacy renamed")

    assert updated.price == 5
    assert updated.service_name == "legacy renamed"
    assert updated.start_date == date(2025, 3, 1)
    assert updated.end_date == date(2025, 1, 1)

    with pytest.raises(SubscriptionValidationError):
        use_case.execute(str(broken.id), start_date="04-2025")

    fixed = use_case.execute(str(broken.id), end_date="06-2025")
    assert fixed.end_date == date(2025, 6, 1)


def test_update_unknown_id_not_found(db_session):
    with pytest.raises(SubscriptionNotFound):
        UpdateSubscriptionUseCase(db_session).execute(str(uuid.uuid4()), price=1)


def test_delete_removes_contribution(db_session):
    keep = _create(db_session, name="A", price=100, start="01-2025", end="03-2025")
    gone = _create(db_session, name="B", price=50, start="01-2025", end="03-2025")
    assert _total(db_session, "01-2025", "03-2025") == 450

    DeleteSubscriptionUseCase(db_session).execute(str(gone.id))

    assert _total(db_session, "01-2025", "03-2025") == 300
    with pytest.raises(SubscriptionNotFound):
        GetSubscriptionUseCase(db_session).execute(str(gone.id))
    assert GetSubscriptionUseCase(db_session).execute(str(keep.id)).price == 100


def test_delete_unknown_id_not_found(db_session):
    with pytest.raises(SubscriptionNotFound):
        DeleteSubscriptionUseCase(db_session).execute(str(uuid.uuid4()))


# ============================================================================
# List
# ============================================================================


def _add_raw(db, name, start, created_at, user_id=USER, end=None, price=100):
    sub = SubscriptionModel(
        service_name=name, price=price, user_id=uuid.UUID(user_id),
        start_date=start, end_date=end, created_at=created_at,
    )
    db.add(sub)
    db.commit()
    return sub


def test_list_orders_by_start_then_created_desc(db_session):
    _add_raw(db_session, "old", date(2025, 1, 1), datetime(2025, 1, 5))
    _add_raw(db_session, "new-first", date(2025, 6, 1), datetime(2025, 6, 1))
    _add_raw(db_session, "new-second", date(2025, 6, 1), datetime(2025, 6, 2))

    items = ListSubscriptionsQuery(db_session).execute()

    assert [s.service_name for s in items] == ["new-second", "new-first", "old"]


def test_list_filters(db_session):
    _create(db_session, name="Netflix", start="01-2025")
    _create(db_session, name="Spotify", start="05-2025")
    _create(db_session, name="Netflix", start="09-2025", user_id=OTHER)

    q = ListSubscriptionsQuery(db_session)
    assert len(q.execute(user_id=USER)) == 2
    assert len(q.execute(service_name="Netflix")) == 2
    assert len(q.execute(user_id=OTHER, service_name="Netflix")) == 1
    assert len(q.execute(service_name="netflix")) == 0


def test_list_date_filter_uses_start_date_only(db_session):
    # active during 06-2025 but started earlier: not returned by the start_date range
    _create(db_session, name="Long", start="01-2025", end="12-2025")
    _create(db_session, name="June", start="06-2025")
    _create(db_session, name="August", start="08-2025")

    items = ListSubscriptionsQuery(db_session).execute(start_from="06-2025", start_to="07-2025")

    assert [s.service_name for s in items] == ["June"]


def test_list_pagination_and_defaults(db_session):
    for i in range(5):
        _create(db_session, name=f"S{i}", start=f"0{i + 1}-2025")

    q = ListSubscriptionsQuery(db_session, default_limit=3, max_limit=4)
    assert len(q.execute()) == 3
    assert len(q.execute(limit=0)) == 3
    assert len(q.execute(limit=-2)) == 3
    assert len(q.execute(limit=10)) == 4

    page = q.execute(limit=2, offset=1)
    assert [s.service_name for s in page] == ["S3", "S2"]
    assert [s.service_name for s in q.execute(limit=2, offset=-1)] == ["S4", "S3"]


def test_list_rejects_malformed_filters(db_session):
    q = ListSubscriptionsQuery(db_session)
    with pytest.raises(InvalidIdentifier):
        q.execute(user_id="abc")
    with pytest.raises(InvalidMonthFormat):
        q.execute(start_from="2025-01")


# ============================================================================
# Total for period
# ============================================================================


def test_total_scenario_bounded_subscription(db_session):
    _create(db_session, price=300, start="07-2025", end="09-2025")
    assert _total(db_session, "07-2025", "09-2025") == 900


def test_total_scenario_open_ended_until_window_end(db_session):
    _create(db_session, price=100, start="07-2025", end=None)
    assert _total(db_session, "06-2025", "08-2025") == 200


def test_total_scenario_no_overlap(db_session):
    _create(db_session, price=50, start="01-2025", end="02-2025")
    assert _total(db_session, "06-2025", "07-2025") == 0


def test_total_scenario_service_filter(db_session):
    _create(db_session, name="Yandex Plus", price=400, start="01-2025", end="03-2025")
    _create(db_session, name="Kinopoisk", price=250, start="01-2025", end="03-2025")

    assert _total(db_session, "01-2025", "03-2025", user_id=USER, service_name="Yandex Plus") == 1200
    assert _total(db_session, "01-2025", "03-2025", user_id=USER) == 1950


def test_total_user_filter(db_session):
    _create(db_session, price=100, start="01-2025", end="01-2025")
    _create(db_session, price=7, start="01-2025", end="01-2025", user_id=OTHER)

    assert _total(db_session, "01-2025", "01-2025", user_id=OTHER) == 7
    assert _total(db_session, "01-2025", "01-2025") == 107


def test_total_is_zero_without_subscriptions(db_session):
    assert _total(db_session, "01-2025", "12-2025") == 0


def test_total_is_idempotent(db_session):
    _create(db_session, price=123, start="02-2025")
    _create(db_session, price=45, start="11-2024", end="04-2025")
    first = _total(db_session, "01-2025", "06-2025")
    assert first == _total(db_session, "01-2025", "06-2025")
    assert first == 123 * 5 + 45 * 4


def test_total_across_year_boundary(db_session):
    _create(db_session, price=10, start="11-2024", end="02-2025")
    assert _total(db_session, "12-2024", "03-2025") == 30


def test_total_inverted_stored_row_contributes_zero(db_session):
    _add_raw(db_session, "broken", date(2025, 3, 1), datetime(2025, 1, 1), end=date(2025, 1, 1))
    assert _total(db_session, "01-2025", "03-2025") == 0


def test_total_requires_valid_window(db_session):
    with pytest.raises(SubscriptionValidationError):
        _total(db_session, None, "03-2025")
    with pytest.raises(SubscriptionValidationError):
        _total(db_session, "01-2025", "")
    with pytest.raises(InvalidMonthFormat):
        _total(db_session, "1-2025", "03-2025")
    with pytest.raises(SubscriptionValidationError):
        _total(db_session, "04-2025", "03-2025")
    with pytest.raises(InvalidIdentifier):
        _total(db_session, "01-2025", "03-2025", user_id="nope")


def test_sql_total_matches_in_process_total(db_session):
    _create(db_session, name="A", price=300, start="07-2025", end="09-2025")
    _create(db_session, name="B", price=100, start="07-2025")
    _create(db_session, name="C", price=50, start="01-2025", end="02-2025")
    _create(db_session, name="A", price=75, start="12-2024", end="08-2025", user_id=OTHER)
    _add_raw(db_session, "broken", date(2025, 8, 1), datetime(2025, 1, 1), end=date(2025, 6, 1))

    repo = SubscriptionRepository(db_session)
    windows = [
        (date(2025, 7, 1), date(2025, 9, 1)),
        (date(2025, 6, 1), date(2025, 8, 1)),
        (date(2024, 1, 1), date(2026, 12, 1)),
        (date(2025, 2, 1), date(2025, 2, 1)),
    ]
    for start, end in windows:
        window = MonthWindow.of(start, end)
        for filters in ({}, {"service_name": "A"}, {"user_id": uuid.UUID(OTHER)}):
            candidates = repo.select_candidates(window, **filters)
            assert repo.total_for_period(window, **filters) == total_for_period(candidates, window)
