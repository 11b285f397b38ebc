from __future__ import annotations

import base64
import io
import json
from collections.abc import Sequence
from datetime import datetime

import qrcode
from PIL import Image


def build_ticket_payload(
    *,
    order_id: str,
    user_id: str,
    event_ids: Sequence[str],
    total_amount: str,
    issued_at: datetime,
) -> str:
    return json.dumps(
        {
            "orderId": order_id,
            "userId": user_id,
            "eventIds": list(event_ids),
            "amount": total_amount,
            "issuedAt": issued_at.isoformat(),
        },
        separators=(",", ":"),
        sort_keys=True,
    )


def render_qr_png(payload: str, *, box_size: int = 8, border: int = 2) -> bytes:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    image: Image.Image = qr.make_image(fill_color="black", back_color="white").get_image()

    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_url(payload: str) -> str:
    encoded = base64.b64encode(render_qr_png(payload)).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def decode_data_url(data_url: str) -> bytes:
    _, _, encoded = data_url.partition(",")
    return base64.b64decode(encoded)
