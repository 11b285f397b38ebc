import json
from datetime import datetime, timezone

from app.services.ticket_qr import build_ticket_payload, decode_data_url, render_qr_data_url, render_qr_png

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def test_ticket_payload_is_compact_sorted_json() -> None:
    payload = build_ticket_payload(
        order_id="ord-1",
        user_id="usr-1",
        event_ids=["evt-2", "evt-1"],
        total_amount="590.00",
        issued_at=datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc),
    )

    assert " " not in payload
    assert json.loads(payload) == {
        "amount": "590.00",
        "eventIds": ["evt-2", "evt-1"],
        "issuedAt": "2026-06-01T12:00:00+00:00",
        "orderId": "ord-1",
        "userId": "usr-1",
    }


def test_qr_png_renders() -> None:
    assert render_qr_png("ticket").startswith(PNG_MAGIC)


def test_data_url_decodes_back_to_png() -> None:
    data_url = render_qr_data_url("ticket")

    assert data_url.startswith("data:image/png;base64,")
    assert decode_data_url(data_url).startswith(PNG_MAGIC)
