from __future__ import annotations

from typing import BinaryIO, List

from PIL import Image, UnidentifiedImageError

from ..core.exceptions import ValidationError


def decode_barcodes(stream: BinaryIO) -> List[str]:
    """Decode every barcode/QR symbol found in an uploaded kiosk image."""

    # pyzbar binds the native zbar library on import.
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        img = Image.open(stream).convert("RGB")
    except UnidentifiedImageError:
        raise ValidationError("Uploaded file is not an image") from None

    values: List[str] = []
    for symbol in pyzbar_decode(img):
        text = symbol.data.decode("utf-8", errors="replace").strip()
        if text:
            values.append(text)
    return values


def decode_student_id(stream: BinaryIO) -> str:
    values = decode_barcodes(stream)
    if not values:
        raise ValidationError("No barcode detected in image")
    return values[0]
