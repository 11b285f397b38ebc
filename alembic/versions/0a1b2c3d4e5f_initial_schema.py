"""initial_schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0a1b2c3d4e5f"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

EMPTY_JSON_ARRAY = sa.text("'[]'::jsonb")
EMPTY_JSON_OBJECT = sa.text("'{}'::jsonb")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("password_hash", sa.String(128), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column(
            "favorites",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("""'{"artists": [], "songs": [], "events": []}'::jsonb"""),
        ),
        sa.Column("playlists", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_ARRAY),
        sa.Column("following", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_ARRAY),
        sa.Column(
            "ad_preference",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("""'{"personalized": true, "categories": []}'::jsonb"""),
        ),
        sa.Column("plan_type", sa.String(16), nullable=False, server_default=sa.text("'FREE'")),
        sa.Column("plan_renews_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('fan','artist','admin')", name="ck_users_role"),
        sa.CheckConstraint("plan_type IN ('FREE','PREMIUM')", name="ck_users_plan_type"),
        sa.UniqueConstraint("email", name="users_email_key"),
    )
    op.create_index("idx_users_role", "users", ["role"])
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "artist_profiles",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bio", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("social_links", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_OBJECT),
        sa.Column("followers", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_ARRAY),
        sa.Column("total_plays", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_likes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("revenue_subscriptions", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("revenue_merch", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("revenue_events", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("revenue_ads", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("trending_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("total_plays >= 0", name="ck_artist_profiles_total_plays_non_negative"),
        sa.CheckConstraint("total_likes >= 0", name="ck_artist_profiles_total_likes_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("idx_artist_profiles_featured", "artist_profiles", ["featured"])
    op.create_index("idx_artist_profiles_verified", "artist_profiles", ["verified"])

    op.create_table(
        "songs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("genre", sa.String(64), nullable=False),
        sa.Column("file_url", sa.Text(), nullable=False),
        sa.Column("artwork_url", sa.Text(), nullable=False),
        sa.Column("duration_sec", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("plays", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("unique_listeners", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("likes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("shares", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reviews", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_ARRAY),
        sa.Column("visibility", sa.String(16), nullable=False, server_default=sa.text("'PUBLIC'")),
        sa.Column("ad_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("visibility IN ('PUBLIC','SUBSCRIBER_ONLY')", name="ck_songs_visibility"),
        sa.CheckConstraint("plays >= 0", name="ck_songs_plays_non_negative"),
        sa.CheckConstraint("likes >= 0", name="ck_songs_likes_non_negative"),
        sa.ForeignKeyConstraint(["artist_id"], ["users.id"]),
    )
    op.create_index("idx_songs_artist", "songs", ["artist_id"])
    op.create_index("idx_songs_plays", "songs", ["plays"])
    op.create_index("idx_songs_created_at", "songs", ["created_at"])

    op.create_table(
        "merch",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("images", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_ARRAY),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("orders_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("price >= 0", name="ck_merch_price_non_negative"),
        sa.CheckConstraint("stock >= 0", name="ck_merch_stock_non_negative"),
        sa.ForeignKeyConstraint(["artist_id"], ["users.id"]),
    )
    op.create_index("idx_merch_artist", "merch", ["artist_id"])
    op.create_index("idx_merch_category", "merch", ["category"])

    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("online_url", sa.Text(), nullable=True),
        sa.Column("ticket_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("attendees", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_ARRAY),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("ticket_price >= 0", name="ck_events_ticket_price_non_negative"),
        sa.CheckConstraint("capacity IS NULL OR capacity >= 0", name="ck_events_capacity_non_negative"),
        sa.ForeignKeyConstraint(["artist_id"], ["users.id"]),
    )
    op.create_index("idx_events_artist", "events", ["artist_id"])
    op.create_index("idx_events_date", "events", ["date"])

    op.create_table(
        "orders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(8), nullable=False),
        sa.Column("subtotal_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("promo_code", sa.String(32), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'INR'")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("razorpay_order_id", sa.String(64), nullable=True),
        sa.Column("razorpay_payment_id", sa.String(64), nullable=True),
        sa.Column("shipping_address", postgresql.JSONB(), nullable=True),
        sa.Column("qr_ticket_url", sa.Text(), nullable=True),
        sa.Column("invoice_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("type IN ('MERCH','TICKET','MIXED')", name="ck_orders_type"),
        sa.CheckConstraint("status IN ('PENDING','PAID','FAILED','REFUNDED')", name="ck_orders_status"),
        sa.CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("razorpay_order_id", name="orders_razorpay_order_id_key"),
        sa.UniqueConstraint("razorpay_payment_id", name="orders_razorpay_payment_id_key"),
    )
    op.create_index("idx_orders_user_created", "orders", ["user_id", "created_at"])
    op.create_index("idx_orders_status", "orders", ["status"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("merch_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint(
            "(merch_id IS NOT NULL AND event_id IS NULL) OR (merch_id IS NULL AND event_id IS NOT NULL)",
            name="ck_order_items_single_target",
        ),
        sa.CheckConstraint("qty > 0", name="ck_order_items_qty_positive"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["merch_id"], ["merch.id"]),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
    )
    op.create_index("idx_order_items_order", "order_items", ["order_id"])

    op.create_table(
        "subscriptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("fan_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tier", sa.String(8), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'INR'")),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("razorpay_sub_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("tier IN ('BRONZE','SILVER','GOLD')", name="ck_subscriptions_tier"),
        sa.CheckConstraint("amount >= 0", name="ck_subscriptions_amount_non_negative"),
        sa.ForeignKeyConstraint(["fan_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["artist_id"], ["users.id"]),
    )
    op.create_index("idx_subscriptions_fan", "subscriptions", ["fan_id"])
    op.create_index("idx_subscriptions_artist_active", "subscriptions", ["artist_id", "active"])

    op.create_table(
        "analytics_events",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("song_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("merch_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("context", sa.String(16), nullable=False),
        sa.Column("value", sa.Numeric(14, 2), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_OBJECT),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "context IN ('home','profile','discover','player','cart','admin')",
            name="ck_analytics_events_context",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("idx_analytics_events_user_time", "analytics_events", ["user_id", "timestamp"])
    op.create_index(
        "idx_analytics_events_artist_action_time",
        "analytics_events",
        ["artist_id", "action", "timestamp"],
    )
    op.create_index("idx_analytics_events_song_action", "analytics_events", ["song_id", "action"])

    op.create_table(
        "blogs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("visibility", sa.String(16), nullable=False, server_default=sa.text("'PUBLIC'")),
        sa.Column("images", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_ARRAY),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default=EMPTY_JSON_ARRAY),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("visibility IN ('PUBLIC','SUBSCRIBER_ONLY')", name="ck_blogs_visibility"),
        sa.ForeignKeyConstraint(["artist_id"], ["users.id"]),
    )
    op.create_index("idx_blogs_artist", "blogs", ["artist_id"])
    op.create_index("idx_blogs_created_at", "blogs", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_blogs_created_at", table_name="blogs")
    op.drop_index("idx_blogs_artist", table_name="blogs")
    op.drop_table("blogs")

    op.drop_index("idx_analytics_events_song_action", table_name="analytics_events")
    op.drop_index("idx_analytics_events_artist_action_time", table_name="analytics_events")
    op.drop_index("idx_analytics_events_user_time", table_name="analytics_events")
    op.drop_table("analytics_events")

    op.drop_index("idx_subscriptions_artist_active", table_name="subscriptions")
    op.drop_index("idx_subscriptions_fan", table_name="subscriptions")
    op.drop_table("subscriptions")

    op.drop_index("idx_order_items_order", table_name="order_items")
    op.drop_table("order_items")

    op.drop_index("idx_orders_status", table_name="orders")
    op.drop_index("idx_orders_user_created", table_name="orders")
    op.drop_table("orders")

    op.drop_index("idx_events_date", table_name="events")
    op.drop_index("idx_events_artist", table_name="events")
    op.drop_table("events")

    op.drop_index("idx_merch_category", table_name="merch")
    op.drop_index("idx_merch_artist", table_name="merch")
    op.drop_table("merch")

    op.drop_index("idx_songs_created_at", table_name="songs")
    op.drop_index("idx_songs_plays", table_name="songs")
    op.drop_index("idx_songs_artist", table_name="songs")
    op.drop_table("songs")

    op.drop_index("idx_artist_profiles_verified", table_name="artist_profiles")
    op.drop_index("idx_artist_profiles_featured", table_name="artist_profiles")
    op.drop_table("artist_profiles")

    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("idx_users_role", table_name="users")
    op.drop_table("users")
