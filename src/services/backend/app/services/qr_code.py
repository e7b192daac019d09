from io import BytesIO
import base64
from urllib.parse import quote

import qrcode


def render_qr(target_url: str) -> str:
    """Encode a URL as a QR code and return it as a PNG data URL"""
    image = qrcode.make(target_url)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def viewer_url(base_url: str, model_id: str) -> str:
    return f"{base_url.rstrip('/')}/viewer.html?id={quote(model_id)}"
