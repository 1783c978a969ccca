import io
import logging
import os
from uuid import uuid4

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "webp", "gif"}
JPEG_QUALITY = 85


class ImageUploadError(ValueError):
    pass


def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def _flatten(img: Image.Image) -> Image.Image:
    if img.mode in ("RGBA", "LA", "P"):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def prepare_image(raw: bytes, max_dimension: int) -> bytes:
    """Verify, orient, downsize and re-encode an uploaded photo as JPEG."""
    try:
        Image.open(io.BytesIO(raw)).verify()
        img = Image.open(io.BytesIO(raw))
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageUploadError("The uploaded file is not a valid image.") from exc

    img = _flatten(img)
    if max(img.size) > max_dimension:
        img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=JPEG_QUALITY, optimize=True)
    return buffer.getvalue()


def save_upload(file_storage, upload_dir: str, max_dimension: int = 1024) -> tuple[str, bytes]:
    if file_storage is None:
        raise ImageUploadError("Attach a food photo first.")

    filename = file_storage.filename or ""
    mime_type = (file_storage.mimetype or "").lower()
    if not allowed_file(filename) and not mime_type.startswith("image/"):
        raise ImageUploadError("Unsupported file type. Use png/jpg/jpeg/webp/gif.")

    raw = file_storage.read()
    if not raw:
        raise ImageUploadError("The uploaded image was empty.")

    jpeg_bytes = prepare_image(raw, max_dimension)
    stored_name = f"{uuid4().hex}.jpg"
    os.makedirs(upload_dir, exist_ok=True)
    with open(os.path.join(upload_dir, stored_name), "wb") as handle:
        handle.write(jpeg_bytes)

    logger.info("Stored upload %s (%s bytes, was %s)", stored_name, len(jpeg_bytes), len(raw))
    return f"/uploads/{stored_name}", jpeg_bytes


def discard_upload(image_url: str, upload_dir: str) -> None:
    stored_name = os.path.basename(image_url or "")
    if not stored_name:
        return
    path = os.path.join(upload_dir, stored_name)
    if os.path.exists(path):
        os.remove(path)
        logger.info("Discarded upload %s", stored_name)
