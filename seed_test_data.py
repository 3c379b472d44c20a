"""
Seed demo subscriptions for one user and print a sample total.
Run:  python seed_test_data.py
"""
import uuid

from app.infrastructure.db.session import get_session_factory, init_db
from app.infrastructure.db.models import SubscriptionModel
from app.application.subscriptions import (
    CreateSubscriptionUseCase, TotalForPeriodQuery,
)

DEMO_USER_ID = "60601fee-2bf1-4721-ae6f-7636e79a0cba"

SAMPLES = [
    # service_name, price, start, end
    ("Yandex Plus", 400, "07-2025", None),
    ("Netflix", 999, "01-2025", "06-2025"),
    ("Spotify", 299, "03-2025", "12-2025"),
    ("iCloud", 149, "11-2024", None),
]

init_db()
db = get_session_factory()()

existing = db.query(SubscriptionModel).filter_by(user_id=uuid.UUID(DEMO_USER_ID)).count()
if existing:
    print(f"Subscriptions already present ({existing}), skipping inserts")
else:
    create = CreateSubscriptionUseCase(db)
    for name, price, start, end in SAMPLES:
        sub = create.execute(
            service_name=name, price=price, user_id=DEMO_USER_ID,
            start_date=start, end_date=end,
        )
        print(f"+ {sub.service_name:<12} {sub.price:>5}/мес  id={sub.id}")

total = TotalForPeriodQuery(db).execute("01-2025", "12-2025", user_id=DEMO_USER_ID)
print(f"\nTotal 01-2025..12-2025: {total}")

db.close()
