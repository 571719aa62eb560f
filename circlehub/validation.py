"""Input checks for every form the API accepts.

Each ``clean_*`` function takes the raw JSON payload and returns a dict of
column values ready for a model constructor, or raises ValidationError with
a message suitable for showing to the user.
"""
from datetime import datetime

from .errors import ValidationError
from .models import COST_LEVELS, EVENT_TYPES, RESOURCE_CATEGORIES, RESOURCE_TYPES


def as_text(value):
    """Stripped string form of a payload value; None when missing or blank."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def _text(data: dict, key: str):
    return as_text(data.get(key))


def _required(data: dict, *keys):
    missing = [key for key in keys if not _text(data, key)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _int(data: dict, key: str, default=None, minimum=None):
    value = data.get(key)
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a whole number.")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{key} must be at least {minimum}.")
    return number


def _string_list(data: dict, key: str):
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{key} must be a list.")
    items = []
    for item in value:
        item = str(item).strip()
        if item and item not in items:
            items.append(item)
    return items


def _optional_text(data: dict, keys) -> dict:
    return {key: _text(data, key) for key in keys if key in data}


def clean_resource(data: dict) -> dict:
    _required(data, "title", "category", "description")
    resource_type = _text(data, "type") or "article"
    if resource_type not in RESOURCE_TYPES:
        raise ValidationError("Resource type must be 'article' or 'link'.")
    category = _text(data, "category")
    if category not in RESOURCE_CATEGORIES:
        raise ValidationError(f"Unknown category: {category}")
    tags = _string_list(data, "tags")
    if not tags:
        raise ValidationError("Please select at least one tag.")

    content = _text(data, "content")
    url = _text(data, "url")
    # Exactly one of content/url is kept, decided by the type
    if resource_type == "article":
        if not content:
            raise ValidationError("Please provide content for your article.")
        url = None
    else:
        if not url:
            raise ValidationError("Please provide a valid URL for your resource.")
        if not url.startswith(("http://", "https://")):
            raise ValidationError("URL must start with http:// or https://")
        content = None

    return {
        "title": _text(data, "title"),
        "type": resource_type,
        "category": category,
        "description": _text(data, "description"),
        "content": content,
        "url": url,
        "tags": tags,
        "image_url": _text(data, "image_url"),
    }


def clean_venue(data: dict) -> dict:
    _required(data, "name", "location", "contact_information", "cost_level")
    capacity = _int(data, "hosting_capacity", minimum=1)
    if capacity is None:
        raise ValidationError("Missing required fields: hosting_capacity")
    cost_level = _text(data, "cost_level").lower()
    if cost_level not in COST_LEVELS:
        raise ValidationError(f"Cost level must be one of: {', '.join(COST_LEVELS)}")
    return {
        "name": _text(data, "name"),
        "location": _text(data, "location"),
        "hosting_capacity": capacity,
        "contact_information": _text(data, "contact_information"),
        "cost_level": cost_level,
        "notes": _text(data, "notes"),
        "image_url": _text(data, "image_url"),
    }


def clean_application(data: dict) -> dict:
    _required(data, "experience_description")
    cleaned = {"experience_description": _text(data, "experience_description")}
    cleaned.update(_optional_text(data, (
        "title", "public_bio", "approach", "certifications", "availability",
        "contact_references", "contact_email", "website",
    )))
    cleaned["years_experience"] = _int(data, "years_experience", minimum=0)
    for key in ("work_types", "preferred_practice_types", "languages"):
        cleaned[key] = _string_list(data, key)
    return cleaned


def parse_date(value):
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError("Date must be in YYYY-MM-DD format.")


def clean_event(data: dict, partial: bool = False) -> dict:
    """Event form; with ``partial`` only the fields present are checked."""
    if not partial:
        _required(data, "title", "date", "time", "location", "type")

    cleaned = {}
    for key in ("title", "time", "location"):
        if key in data:
            value = _text(data, key)
            if not value:
                raise ValidationError(f"{key} cannot be empty.")
            cleaned[key] = value
    if "description" in data:
        cleaned["description"] = _text(data, "description")
    if "image_url" in data:
        cleaned["image_url"] = _text(data, "image_url")
    if "date" in data:
        cleaned["date"] = parse_date(data.get("date"))
    if "type" in data:
        event_type = _text(data, "type")
        if event_type not in EVENT_TYPES:
            raise ValidationError(f"Event type must be one of: {', '.join(EVENT_TYPES)}")
        cleaned["type"] = event_type
    if "max_participants" in data or not partial:
        cleaned["max_participants"] = _int(data, "max_participants", default=20, minimum=1)
    if "price" in data or not partial:
        cleaned["price"] = _int(data, "price", default=0, minimum=0)
    return cleaned


PROFILE_FIELDS = ("full_name", "phone", "bio", "image_url")
FACILITATOR_PROFILE_FIELDS = ("title", "public_bio", "approach", "contact_email", "website", "image_url")


def clean_profile(data: dict) -> dict:
    cleaned = _optional_text(data, PROFILE_FIELDS)
    if "full_name" in cleaned and not cleaned["full_name"]:
        raise ValidationError("Full name cannot be empty.")
    return cleaned


def clean_facilitator_profile(data: dict) -> dict:
    cleaned = _optional_text(data, FACILITATOR_PROFILE_FIELDS)
    for key in ("work_types", "languages"):
        if key in data:
            cleaned[key] = _string_list(data, key)
    if "years_experience" in data:
        cleaned["years_experience"] = _int(data, "years_experience", minimum=0)
    if "is_public_profile" in data:
        cleaned["is_public_profile"] = data.get("is_public_profile") in [True, "True", "true", "1", 1, "on", "yes"]
    return cleaned
