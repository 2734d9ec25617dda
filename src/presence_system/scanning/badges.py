from __future__ import annotations

import io

import qrcode


def render_badge_png(student_id: str) -> io.BytesIO:
    """QR code encoding the student id, printed on the badge the kiosk scans."""

    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(student_id)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf
