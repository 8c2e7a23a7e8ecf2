"""Tolerant normalizer: raw provider records -> canonical Job.

Design rules:
  - Every field may be absent, a scalar, an object or a list of either.
  - Text extraction tries scalars first, then known object keys, then list
    elements, then the field default.
  - Each concept has an ordered tuple of source keys per provider; the first
    non-empty value wins.
  - Pure: no I/O, no clock reads unless ``today`` is omitted.
"""

import hashlib
import html
import logging
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from typing import Any, NamedTuple

from src.core.schemas import EmploymentType, Job
from src.platforms.careerone import keys as careerone_keys
from src.platforms.linkedin import keys as linkedin_keys
from src.platforms.workday import keys as workday_keys

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_KEYS: tuple[str, ...] = ("name", "label", "title", "description")

DEFAULT_TITLE = "No Title"
DEFAULT_COMPANY = "Unknown Company"
DEFAULT_LOCATION = "Location not specified"
DEFAULT_DESCRIPTION = "No description available"
DEFAULT_SALARY = "Not specified"
DEFAULT_APPLY_URL = "#"
DEFAULT_EMPLOYMENT_TYPE: EmploymentType = "full-time"

# Checked in order; first substring hit wins
EMPLOYMENT_VOCABULARY: tuple[tuple[str, EmploymentType], ...] = (
    ("full", "full-time"),
    ("part", "part-time"),
    ("contract", "contract"),
    ("casual", "contract"),
    ("temp", "contract"),
    ("freelance", "contract"),
    ("intern", "internship"),
)

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_EXPERIENCE_RE = re.compile(r"(\d+)\+?\s*years?\s*(?:of\s*)?experience", re.IGNORECASE)
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class FieldKeys(NamedTuple):
    """Ordered source keys for every canonical field of one provider."""

    id: tuple[str, ...]
    title: tuple[str, ...]
    company: tuple[str, ...]
    location: tuple[str, ...]
    description: tuple[str, ...]
    apply_url: tuple[str, ...]
    salary: tuple[str, ...]
    skills: tuple[str, ...]
    requirements: tuple[str, ...]
    labelled_requirements: tuple[tuple[str, str], ...]
    employment_type: tuple[str, ...]
    posted_date: tuple[str, ...]
    company_object_keys: tuple[str, ...] = DEFAULT_OBJECT_KEYS
    location_object_keys: tuple[str, ...] = DEFAULT_OBJECT_KEYS
    salary_object_keys: tuple[str, ...] = DEFAULT_OBJECT_KEYS


def _keys_from_module(module: Any, **object_keys: tuple[str, ...]) -> FieldKeys:
    return FieldKeys(
        id=module.ID_KEYS,
        title=module.TITLE_KEYS,
        company=module.COMPANY_KEYS,
        location=module.LOCATION_KEYS,
        description=module.DESCRIPTION_KEYS,
        apply_url=module.APPLY_URL_KEYS,
        salary=module.SALARY_KEYS,
        skills=module.SKILL_KEYS,
        requirements=module.REQUIREMENT_KEYS,
        labelled_requirements=module.LABELLED_REQUIREMENT_KEYS,
        employment_type=module.EMPLOYMENT_TYPE_KEYS,
        posted_date=module.POSTED_DATE_KEYS,
        **object_keys,
    )


PROVIDER_KEYS: dict[str, FieldKeys] = {
    "linkedin": _keys_from_module(linkedin_keys),
    "workday": _keys_from_module(workday_keys),
    "careerone": _keys_from_module(
        careerone_keys,
        company_object_keys=careerone_keys.COMPANY_OBJECT_KEYS,
        location_object_keys=careerone_keys.LOCATION_OBJECT_KEYS,
        salary_object_keys=careerone_keys.SALARY_OBJECT_KEYS,
    ),
}


# --- Extraction primitives ---


def extract_text(value: Any, object_keys: tuple[str, ...] = DEFAULT_OBJECT_KEYS) -> str:
    """Collapse a scalar, object or list into a stripped string ("" if none)."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        for key in object_keys:
            text = extract_text(value.get(key), object_keys)
            if text:
                return text
        return ""
    if isinstance(value, (list, tuple)):
        for item in value:
            text = extract_text(item, object_keys)
            if text:
                return text
    return ""


def first_text(
    raw: Mapping[str, Any],
    keys: Iterable[str],
    object_keys: tuple[str, ...] = DEFAULT_OBJECT_KEYS,
) -> str:
    """Return the first non-empty text found under any of ``keys``."""
    for key in keys:
        text = extract_text(raw.get(key), object_keys)
        if text:
            return text
    return ""


def flatten_texts(value: Any, *, split_commas: bool = True) -> list[str]:
    """Flatten strings, comma lists, and arrays of strings/objects into strings.

    Comma splitting applies to every text found, whether it came from a bare
    string, a list item, or an object's ``name``/``label`` key, so all three
    shapes of the same value give the same result.
    """
    if value is None or isinstance(value, bool):
        return []
    if isinstance(value, (list, tuple)):
        out: list[str] = []
        for item in value:
            out.extend(flatten_texts(item, split_commas=split_commas))
        return out
    text = value if isinstance(value, str) else extract_text(value)
    parts = text.split(",") if split_commas else [text]
    return [p.strip() for p in parts if p.strip()]


def dedupe_casefold(items: Iterable[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first spelling."""
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        key = item.casefold()
        if item and key not in seen:
            seen.add(key)
            out.append(item)
    return out


def strip_html(text: str) -> str:
    """Remove tags, unescape entities, collapse whitespace."""
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


# --- Field normalizers ---


def normalize_employment_type(value: Any) -> EmploymentType:
    """Map any raw employment type onto the fixed vocabulary."""
    text = extract_text(value, ("label", "description", "name", "title"))
    if not text:
        return DEFAULT_EMPLOYMENT_TYPE
    slug = re.sub(r"[_\s]+", "-", text.lower())
    for needle, canonical in EMPLOYMENT_VOCABULARY:
        if needle in slug:
            return canonical
    logger.debug("Unrecognized employment type '%s', defaulting", text)
    return DEFAULT_EMPLOYMENT_TYPE


def parse_posted_date(value: Any) -> str | None:
    """Return an ISO date for ISO strings or epoch seconds/ms, else None."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = float(value)
        if ts > 1e12:
            ts /= 1000.0
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return None
    text = extract_text(value)
    if not text or not _ISO_DATE_RE.match(text):
        return None
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return None


def normalize_salary(value: Any, object_keys: tuple[str, ...] = DEFAULT_OBJECT_KEYS) -> str:
    """A two-element list is a range; anything else collapses to text."""
    if isinstance(value, (list, tuple)):
        parts = [extract_text(v, object_keys) for v in value]
        parts = [p for p in parts if p]
        if len(parts) >= 2:
            return f"{parts[0]} - {parts[1]}"
        return parts[0] if parts else ""
    return extract_text(value, object_keys)


def requirements_from_description(description: str) -> list[str]:
    """Derive coarse requirement lines from free-text descriptions."""
    out: list[str] = []
    lower = description.lower()
    if "bachelor" in lower or "degree" in lower:
        out.append("Bachelor's degree or equivalent experience")
    match = _EXPERIENCE_RE.search(description)
    if match:
        out.append(f"{match.group(1)}+ years of experience")
    return out


def stable_job_id(provider_id: str, *parts: str) -> str:
    """Deterministic id for records that carry none."""
    digest = hashlib.sha1("|".join((provider_id, *parts)).encode("utf-8")).hexdigest()
    return digest[:16]


# --- Public API ---


def normalize(
    raw: Mapping[str, Any],
    provider_id: str,
    today: date | None = None,
) -> Job:
    """Normalize one raw provider record into a canonical Job.

    Raises:
        ValueError: If ``provider_id`` has no key table.
    """
    keys = PROVIDER_KEYS.get(provider_id)
    if keys is None:
        msg = f"No normalizer keys for provider '{provider_id}'"
        raise ValueError(msg)

    title = first_text(raw, keys.title) or DEFAULT_TITLE
    company = first_text(raw, keys.company, keys.company_object_keys) or DEFAULT_COMPANY
    location = first_text(raw, keys.location, keys.location_object_keys) or DEFAULT_LOCATION
    description = strip_html(first_text(raw, keys.description)) or DEFAULT_DESCRIPTION
    apply_url = first_text(raw, keys.apply_url) or DEFAULT_APPLY_URL

    salary = ""
    for key in keys.salary:
        salary = normalize_salary(raw.get(key), keys.salary_object_keys)
        if salary:
            break

    skills: list[str] = []
    for key in keys.skills:
        skills.extend(flatten_texts(raw.get(key)))

    requirements: list[str] = []
    for key in keys.requirements:
        requirements.extend(flatten_texts(raw.get(key), split_commas=False))
    for key, template in keys.labelled_requirements:
        text = extract_text(raw.get(key))
        if text:
            requirements.append(template.format(text))
    if description != DEFAULT_DESCRIPTION:
        requirements.extend(requirements_from_description(description))

    employment_type = DEFAULT_EMPLOYMENT_TYPE
    for key in keys.employment_type:
        if extract_text(raw.get(key), ("label", "description", "name", "title")):
            employment_type = normalize_employment_type(raw.get(key))
            break

    posted_date = None
    for key in keys.posted_date:
        posted_date = parse_posted_date(raw.get(key))
        if posted_date:
            break

    raw_id = first_text(raw, keys.id)
    if not raw_id:
        raw_id = stable_job_id(provider_id, apply_url, title, company, location)

    return Job(
        id=f"{provider_id}:{raw_id}",
        title=title,
        company=company,
        location=location,
        description=description,
        requirements=dedupe_casefold(requirements),
        skills=dedupe_casefold(skills),
        salary_range=salary or DEFAULT_SALARY,
        employment_type=employment_type,
        posted_date=posted_date or (today or date.today()).isoformat(),
        apply_url=apply_url,
        source=provider_id,
    )


def normalize_all(
    records: Iterable[Any],
    provider_id: str,
    today: date | None = None,
) -> list[Job]:
    """Normalize many records, skipping any that are not objects."""
    jobs: list[Job] = []
    for index, raw in enumerate(records):
        if not isinstance(raw, Mapping):
            logger.debug("Skipping non-object record %d from %s", index, provider_id)
            continue
        jobs.append(normalize(raw, provider_id, today))
    return jobs
