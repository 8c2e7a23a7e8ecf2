"""Workday actor payload keys with fallbacks.

Workday tenants expose different field names depending on the portal
version, so every concept has several candidates.
"""

ID_KEYS: tuple[str, ...] = ("id", "jobId", "requisitionId")

TITLE_KEYS: tuple[str, ...] = ("title", "jobTitle", "positionTitle")

COMPANY_KEYS: tuple[str, ...] = ("company", "companyName", "organization", "employer")

LOCATION_KEYS: tuple[str, ...] = (
    "location",
    "locationName",
    "jobLocation",
    "primaryLocation",
)

DESCRIPTION_KEYS: tuple[str, ...] = ("description", "jobDescription", "summary")

APPLY_URL_KEYS: tuple[str, ...] = (
    "url",
    "applyUrl",
    "externalJobUrl",
    "jobUrl",
    "link",
)

SALARY_KEYS: tuple[str, ...] = ("salaryRange", "compensation", "salary")

SKILL_KEYS: tuple[str, ...] = ("skills", "jobCategory", "department")

REQUIREMENT_KEYS: tuple[str, ...] = ("requirements", "qualifications")

LABELLED_REQUIREMENT_KEYS: tuple[tuple[str, str], ...] = (
    ("experienceLevel", "{}"),
    ("seniorityLevel", "{}"),
)

EMPLOYMENT_TYPE_KEYS: tuple[str, ...] = ("employmentType", "jobType", "timeType")

POSTED_DATE_KEYS: tuple[str, ...] = ("postedDate", "datePosted", "startDate")
