"""
validation.py - Payload Validation
Snippet Catalog

Validates and normalizes snippet and category payloads coming from the
editor form or the JSON API. Every check runs, and all problems are
reported together in a single ValidationError.
"""

import re
from typing import List

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
DESCRIPTION_MIN_LENGTH = 10
CATEGORY_NAME_MAX_LENGTH = 100
TAG_MAX_LENGTH = 50
SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')

# Optional text fields, stored as '' when missing
TEXT_FIELDS = ('html', 'css', 'javascript', 'installation', 'how_it_works')

# Older clients post camelCase field names
FIELD_ALIASES = {
    'categoryId': 'category_id',
    'howItWorks': 'how_it_works',
}


class ValidationError(Exception):
    """Raised when a payload fails validation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__('; '.join(self.errors))


def normalize_keys(data: dict) -> dict:
    """Map camelCase aliases onto their snake_case field names."""
    normalized = {}
    for key, value in data.items():
        normalized[FIELD_ALIASES.get(key, key)] = value
    return normalized


def normalize_tags(tags) -> List[str]:
    """
    Trim tags, drop empty ones and duplicates, keep first-seen order.

    Raises:
        ValidationError: If tags is not a list of strings
    """
    if tags is None:
        return []
    if not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags):
        raise ValidationError(['Tags must be a list of strings'])

    result = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def slugify(name: str) -> str:
    """Turn a category name into a URL slug ("Cart Functionality" -> "cart-functionality")."""
    return re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')


def validate_snippet(data: dict) -> dict:
    """
    Validate a create-snippet payload.

    Args:
        data: Raw payload (snake_case or camelCase keys)

    Returns:
        dict: Normalized payload ready for storage.create_snippet()

    Raises:
        ValidationError: With every problem found
    """
    if not isinstance(data, dict):
        raise ValidationError(['Snippet data must be a JSON object'])

    data = normalize_keys(data)
    errors = []

    title = data.get('title')
    if not isinstance(title, str) or len(title.strip()) < TITLE_MIN_LENGTH:
        errors.append(f'Title must be at least {TITLE_MIN_LENGTH} characters')
    elif len(title.strip()) > TITLE_MAX_LENGTH:
        errors.append(f'Title must be {TITLE_MAX_LENGTH} characters or less')

    description = data.get('description')
    if not isinstance(description, str) or len(description.strip()) < DESCRIPTION_MIN_LENGTH:
        errors.append(f'Description must be at least {DESCRIPTION_MIN_LENGTH} characters')

    category_id = data.get('category_id')
    # bool is an int subclass; reject it explicitly
    if isinstance(category_id, bool) or not isinstance(category_id, int) or category_id < 1:
        errors.append('Category is required')

    compatibility = data.get('compatibility')
    if not isinstance(compatibility, str) or not compatibility.strip():
        errors.append('Compatibility is required')

    for field in TEXT_FIELDS:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            errors.append(f'{field} must be text')

    tags = []
    try:
        tags = normalize_tags(data.get('tags'))
    except ValidationError as e:
        errors.extend(e.errors)
    if any(len(tag) > TAG_MAX_LENGTH for tag in tags):
        errors.append(f'Tags must be {TAG_MAX_LENGTH} characters or less')

    if errors:
        raise ValidationError(errors)

    snippet = {
        'title': title.strip(),
        'description': description.strip(),
        'category_id': category_id,
        'compatibility': compatibility.strip(),
        'tags': tags,
    }
    for field in TEXT_FIELDS:
        snippet[field] = data.get(field) or ''
    return snippet


def validate_category(data: dict) -> dict:
    """
    Validate a create-category payload. A missing slug is derived from the name.

    Returns:
        dict: {'name': ..., 'slug': ...}

    Raises:
        ValidationError: With every problem found
    """
    if not isinstance(data, dict):
        raise ValidationError(['Category data must be a JSON object'])

    errors = []
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        errors.append('Category name is required')
        name = ''
    elif len(name.strip()) > CATEGORY_NAME_MAX_LENGTH:
        errors.append(f'Category name must be {CATEGORY_NAME_MAX_LENGTH} characters or less')
    name = name.strip()

    slug = data.get('slug')
    if slug is None or slug == '':
        slug = slugify(name)
    if (slug or name) and (not isinstance(slug, str) or not SLUG_PATTERN.match(slug)):
        errors.append('Slug can only contain lowercase letters, numbers, and single hyphens')

    if errors:
        raise ValidationError(errors)

    return {'name': name, 'slug': slug}
