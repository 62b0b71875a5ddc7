from __future__ import annotations

from fastapi import UploadFile

from ai_gateway.core.errors import GatewayError
from ai_gateway.core.settings import settings
from ai_gateway.integrations.openai_responses import ImageAttachment


def read_image(upload: UploadFile | None) -> ImageAttachment | None:
    """Read an optional multipart image into memory, enforcing type and size limits."""
    if upload is None:
        return None

    mime = (upload.content_type or "").split(";")[0].strip().lower()
    if not mime.startswith("image/"):
        raise GatewayError(400, "The attached file must be an image.")

    limit = max(1, int(settings.MAX_IMAGE_BYTES))
    content = upload.file.read(limit + 1)
    if len(content) > limit:
        raise GatewayError(413, f"Image is larger than {limit} bytes.")
    if not content:
        raise GatewayError(400, "The attached image is empty.")
    return ImageAttachment(content=content, mime_type=mime)
