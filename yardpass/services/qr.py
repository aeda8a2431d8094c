import uuid
from io import BytesIO

import qrcode

from yardpass.services.errors import QRFormatError

QR_PREFIX = "yardpass://pass/"


def build_qr_payload(pass_id: str) -> str:
    return f"{QR_PREFIX}{pass_id}"


def encode_qr(pass_id: str) -> bytes:
    """PNG с QR-кодом пропуска"""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=8,
        border=4,
    )
    qr.add_data(build_qr_payload(pass_id))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def decode_qr(data: str) -> str:
    """
    Извлечь ID пропуска из содержимого QR: "yardpass://pass/<uuid>" или просто UUID.
    """
    value = (data or "").strip()
    if value.startswith(QR_PREFIX):
        value = value[len(QR_PREFIX):]

    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise QRFormatError()
