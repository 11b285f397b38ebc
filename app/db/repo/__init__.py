from app.db.repo.analytics_repo import AnalyticsRepo
from app.db.repo.blogs_repo import BlogsRepo
from app.db.repo.events_repo import EventsRepo
from app.db.repo.merch_repo import MerchRepo
from app.db.repo.orders_repo import OrdersRepo
from app.db.repo.songs_repo import SongsRepo
from app.db.repo.subscriptions_repo import SubscriptionsRepo
from app.db.repo.users_repo import UsersRepo

__all__ = [
    "AnalyticsRepo",
    "BlogsRepo",
    "EventsRepo",
    "MerchRepo",
    "OrdersRepo",
    "SongsRepo",
    "SubscriptionsRepo",
    "UsersRepo",
]
