import logging
import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class UploadError(Exception):
    pass


def upload_attachment(file) -> str:
    """Send an uploaded file to the hosted upload endpoint, return its public URL.

    Uses an unsigned upload preset, so no API secret lives in this app.
    """
    if not settings.CLOUDINARY_CLOUD_NAME or not settings.CLOUDINARY_UPLOAD_PRESET:
        logger.error("Upload endpoint not configured (cloud name/upload preset)")
        raise UploadError("attachment uploads are not configured")
    url = f"{settings.CLOUDINARY_UPLOAD_URL}/{settings.CLOUDINARY_CLOUD_NAME}/auto/upload"
    file.seek(0)
    try:
        r = requests.post(
            url,
            data={"upload_preset": settings.CLOUDINARY_UPLOAD_PRESET},
            files={"file": (file.name, file, getattr(file, "content_type", None) or "application/octet-stream")},
            timeout=60,
        )
        r.raise_for_status()
        data = r.json()
    except requests.HTTPError as e:
        body = e.response.text if e.response is not None else ""
        logger.error(
            "Upload POST %s failed: %s %s", url, getattr(e.response, "status_code", ""), body[:500]
        )
        raise UploadError(str(e)) from e
    except (requests.RequestException, ValueError) as e:
        logger.error("Upload POST %s failed: %s", url, e)
        raise UploadError(str(e)) from e
    secure_url = data.get("secure_url")
    if not secure_url:
        logger.error("Upload response from %s carried no secure_url", url)
        raise UploadError("upload response carried no URL")
    return secure_url
