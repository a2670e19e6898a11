"""
Field-level validation for project payloads.

``validate_project`` never raises: values of the wrong type are treated as
empty and reported as missing.
"""

from typing import Any, Dict, Mapping, get_args

from pydantic import AnyUrl, TypeAdapter, ValidationError

from schemas import ProjectStatus

VALID_STATUSES = get_args(ProjectStatus)
UPLOADS_PREFIX = "/uploads/"

MAX_TAGS = 10
MAX_TAG_LENGTH = 20

_url = TypeAdapter(AnyUrl)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def is_valid_url(value: str) -> bool:
    try:
        url = _url.validate_python(value)
    except ValidationError:
        return False
    return bool(url.host)


def _check_length(value: Any, label: str, low: int, high: int):
    text = _text(value)
    if not text:
        return f"{label} is required"
    if len(text) < low:
        return f"{label} must be at least {low} characters"
    if len(text) > high:
        return f"{label} must be at most {high} characters"
    return None


def _check_image_url(value: Any):
    url = _text(value)
    if not url:
        return "Image is required"
    if url.startswith(UPLOADS_PREFIX):
        return None
    # only https for external images; linkUrl below also takes http
    if not url.startswith("https://"):
        return "Image must be an uploaded file or an https:// URL"
    if not is_valid_url(url):
        return "Invalid URL format"
    return None


def _check_link_url(value: Any):
    url = _text(value)
    if not url:
        return "Link URL is required"
    if not url.startswith(("http://", "https://")):
        return "Link URL must start with http:// or https://"
    if not is_valid_url(url):
        return "Invalid URL format"
    return None


def _check_tags(value: Any):
    if not isinstance(value, list):
        return "Tags must be an array"
    if len(value) > MAX_TAGS:
        return f"Maximum {MAX_TAGS} tags allowed"
    for tag in value:
        if not isinstance(tag, str) or not 1 <= len(tag.strip()) <= MAX_TAG_LENGTH:
            return f"Each tag must be 1-{MAX_TAG_LENGTH} characters"
    return None


def validate_project(data: Mapping[str, Any], is_partial: bool = False) -> Dict[str, str]:
    if not isinstance(data, Mapping):
        data = {}
    errors: Dict[str, str] = {}

    def wanted(key: str) -> bool:
        return not is_partial or key in data

    checks = {
        "title": lambda v: _check_length(v, "Title", 3, 100),
        "description": lambda v: _check_length(v, "Description", 10, 2000),
        "imageUrl": _check_image_url,
        "linkUrl": _check_link_url,
    }
    for key, check in checks.items():
        if wanted(key):
            message = check(data.get(key))
            if message:
                errors[key] = message

    if "tags" in data:
        message = _check_tags(data["tags"])
        if message:
            errors["tags"] = message

    if wanted("status") and data.get("status") not in VALID_STATUSES:
        errors["status"] = "Status must be WIP, Live, or Archived"

    return errors
