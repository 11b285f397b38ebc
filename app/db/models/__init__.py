from app.db.models.analytics_events import AnalyticsEvent
from app.db.models.artist_profiles import ArtistProfile
from app.db.models.blogs import Blog
from app.db.models.events import Event
from app.db.models.merch import Merch
from app.db.models.orders import Order, OrderItem
from app.db.models.songs import Song
from app.db.models.subscriptions import Subscription
from app.db.models.users import User

__all__ = [
    "AnalyticsEvent",
    "ArtistProfile",
    "Blog",
    "Event",
    "Merch",
    "Order",
    "OrderItem",
    "Song",
    "Subscription",
    "User",
]
