ROLE_FAN = "fan"
ROLE_ARTIST = "artist"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_FAN, ROLE_ARTIST, ROLE_ADMIN)
SIGNUP_ROLES = (ROLE_FAN, ROLE_ARTIST)

PLAN_FREE = "FREE"
PLAN_PREMIUM = "PREMIUM"

VISIBILITY_PUBLIC = "PUBLIC"
VISIBILITY_SUBSCRIBER_ONLY = "SUBSCRIBER_ONLY"
VISIBILITIES = (VISIBILITY_PUBLIC, VISIBILITY_SUBSCRIBER_ONLY)

ORDER_TYPE_MERCH = "MERCH"
ORDER_TYPE_TICKET = "TICKET"
ORDER_TYPE_MIXED = "MIXED"

ORDER_STATUS_PENDING = "PENDING"
ORDER_STATUS_PAID = "PAID"
ORDER_STATUS_FAILED = "FAILED"
ORDER_STATUS_REFUNDED = "REFUNDED"

SUBSCRIPTION_TIERS = ("BRONZE", "SILVER", "GOLD")
SUBSCRIPTION_PERIOD_DAYS = 30

DEFAULT_CURRENCY = "INR"
UNKNOWN_ARTIST_NAME = "Unknown Artist"
