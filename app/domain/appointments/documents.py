"""Supporting documents uploaded ahead of a booking"""

import logging
from typing import Optional

from ...models import Profile
from ...utils.object_storage import ALLOWED_DOCUMENT_TYPES, ObjectStorage, document_key, validate_upload

logger = logging.getLogger(__name__)


def store_appointment_document(
    actor: Profile,
    storage: ObjectStorage,
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
) -> dict:
    """
    Validate and store one document for the caller.

    The returned url and fileName are what the booking form later sends as
    document_url and document_file_name.

    Raises:
        UploadError: invalid file (400) or storage failure (502)
    """
    validate_upload(filename, content_type, len(data), ALLOWED_DOCUMENT_TYPES)
    key = document_key(actor.id, filename)
    url = storage.store(data, content_type, key)
    logger.info(f"📎 Document {filename} uploaded by {actor.email} as {key}")
    return {
        "success": True,
        "url": url,
        "fileName": filename,
        "path": key,
        "size": len(data),
        "type": content_type,
    }
