"""Final file name construction for approved documents."""

import os
import re
from datetime import date, datetime
from typing import Optional, Union

from models import SUPPORTED_MIME_TYPES


def sanitize_filename(name: str) -> str:
    """Sanitize a model-suggested name for use as a Drive file name.

    Drive only forbids '/', but names also end up in Discord embeds and
    marker strings, so control characters and line breaks go too.
    """
    name = name.replace('/', '-')
    name = name.replace('\\', '-')
    name = re.sub(r'[\x00-\x1f\x7f]', ' ', name)
    name = name.strip().strip('.')
    name = re.sub(r'\s+', ' ', name)
    name = re.sub(r'-+', '-', name)
    if len(name) > 100:
        name = name[:100].strip()
    return name


def _strip_known_extension(name: str) -> str:
    stem, ext = os.path.splitext(name)
    if ext.lower() in SUPPORTED_MIME_TYPES:
        return stem
    return name


def name_stem(suggested_name: str) -> str:
    """Usable name stem from a model suggestion; empty if nothing is left."""
    return sanitize_filename(_strip_known_extension(suggested_name))


def build_final_name(suggested_name: str, created: Optional[Union[datetime, date]],
                     original_name: str) -> str:
    """Build `<YYYY-MM-DD>_<suggestedName><ext>`.

    Args:
        suggested_name: Name stem proposed by the classifier
        created: Document creation time (today if unknown)
        original_name: Current file name; its extension is kept (lower-cased)

    Returns:
        The exact name that will be applied after approval

    Raises:
        ValueError: If the suggestion sanitizes to an empty stem
    """
    stem = name_stem(suggested_name)
    if not stem:
        raise ValueError(f"Unusable file name suggestion: {suggested_name!r}")
    if created is None:
        created = date.today()
    ext = os.path.splitext(original_name)[1].lower()
    return f"{created.strftime('%Y-%m-%d')}_{stem}{ext}"
