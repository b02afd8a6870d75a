"""Helper utilities."""

import re
from typing import Any, Iterable, List, Optional


def get_file_extension(filename: str) -> str:
    """Lowercase extension without the dot, '' when there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for storage."""
    # Remove special characters
    sanitized = re.sub(r"[^\w\s.-]", "", filename)
    # Replace spaces with underscores
    sanitized = re.sub(r"\s+", "_", sanitized)
    return sanitized[:255]  # Limit length


def display_name_for(file_name: Optional[str], metadata: Optional[dict], file_path: Optional[str]) -> str:
    """Name to show for a document: stored name, original upload name, then last path segment."""
    if file_name:
        return file_name
    if metadata and metadata.get("original_name"):
        return metadata["original_name"]
    if file_path:
        return file_path.rsplit("/", 1)[-1]
    return ""


def unique_ids(values: Optional[Iterable[Any]]) -> List[str]:
    """Drop empty and duplicate ids, keeping first-seen order, as strings."""
    seen = []
    for value in values or []:
        if value in (None, ""):
            continue
        value = str(value)
        if value not in seen:
            seen.append(value)
    return seen
