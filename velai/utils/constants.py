"""Common constants."""

from enum import Enum


class DocumentType(str, Enum):
    """Roles a stored document can play."""

    RESUME = "resume"
    COVER_LETTER = "cover_letter"
    CERTIFICATE = "certificate"
    PORTFOLIO = "portfolio"
    REFERENCE = "reference"
    PASSPORT = "passport"
    VISA = "visa"
    OTHER = "other"


# Interview formats
INTERVIEW_FORMATS = ["video", "phone", "onsite"]

# Chat
CHAT_USER_TYPES = ["candidate", "employer"]
PDF_MIME_TYPE = "application/pdf"

# Storage object keys: documents/{owner_id}/{document_type}/{timestamp}.{ext}
DOCUMENTS_PATH_PREFIX = "documents"
