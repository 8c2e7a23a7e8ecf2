"""LinkedIn scraper payload keys with fallbacks.

Ordered by preference: the actor's current schema first, older names after.
Each constant is a tuple so the normalizer iterates until a value is found.
"""

ID_KEYS: tuple[str, ...] = ("id", "jobId")

TITLE_KEYS: tuple[str, ...] = ("title", "jobTitle")

COMPANY_KEYS: tuple[str, ...] = ("companyName", "company")

LOCATION_KEYS: tuple[str, ...] = ("location", "formattedLocation")

# descriptionHtml is stripped of tags by the normalizer
DESCRIPTION_KEYS: tuple[str, ...] = ("descriptionText", "descriptionHtml", "description")

APPLY_URL_KEYS: tuple[str, ...] = ("link", "applyUrl", "url")

# salaryInfo is a list like ["$17.00", "$19.00"]
SALARY_KEYS: tuple[str, ...] = ("salaryInfo", "salary", "salaryRange")

SKILL_KEYS: tuple[str, ...] = ("jobFunction", "industries", "skills", "benefits")

REQUIREMENT_KEYS: tuple[str, ...] = ("requirements",)

# (key, template) pairs rendered into requirement lines
LABELLED_REQUIREMENT_KEYS: tuple[tuple[str, str], ...] = (
    ("seniorityLevel", "Seniority Level: {}"),
    ("applicantsCount", "{} applicants"),
)

EMPLOYMENT_TYPE_KEYS: tuple[str, ...] = ("employmentType",)

POSTED_DATE_KEYS: tuple[str, ...] = ("postedAt", "postedDate", "publishedAt")
