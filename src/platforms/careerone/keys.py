"""CareerOne actor payload keys with fallbacks.

The actor has shipped two schemas: Seek-style (heading, advertiser, content)
and CareerOne-style (job_title, company_name, job_description, URL).
Both are listed, CareerOne-style first.
"""

ID_KEYS: tuple[str, ...] = ("id", "jobId", "jobAdId")

TITLE_KEYS: tuple[str, ...] = ("job_title", "heading", "title", "jobTitle", "position")

# advertiser may be a string or an object with description/name/label
COMPANY_KEYS: tuple[str, ...] = (
    "advertiser",
    "company_name",
    "company",
    "companyName",
    "employer",
)

LOCATION_KEYS: tuple[str, ...] = (
    "location",
    "locationName",
    "locationLabel",
    "suburb",
    "city",
)

DESCRIPTION_KEYS: tuple[str, ...] = (
    "job_description",
    "job_description_html",
    "content",
    "description",
    "jobDescription",
    "summary",
    "teaser",
)

APPLY_URL_KEYS: tuple[str, ...] = ("URL", "url", "jobUrl", "applyUrl", "apply_url", "link")

SALARY_KEYS: tuple[str, ...] = (
    "pay_description",
    "salary",
    "salaryRange",
    "wage",
    "salaryLabel",
)

SKILL_KEYS: tuple[str, ...] = (
    "skills",
    "perks",
    "skills_details",
    "category",
    "industry",
    "classification",
    "subClassification",
)

REQUIREMENT_KEYS: tuple[str, ...] = ("requirements",)

LABELLED_REQUIREMENT_KEYS: tuple[tuple[str, str], ...] = ()

# workType may be ["Full time"], "Full time" or {"label": "Full time"}
EMPLOYMENT_TYPE_KEYS: tuple[str, ...] = ("workType", "workTypes", "employmentType", "jobType")

POSTED_DATE_KEYS: tuple[str, ...] = (
    "created_at",
    "listingDate",
    "postedDate",
    "datePosted",
    "publishedAt",
    "expiresAt",
)

# Object shapes seen for nested values, in lookup order
LOCATION_OBJECT_KEYS: tuple[str, ...] = ("label", "area", "description", "name")
COMPANY_OBJECT_KEYS: tuple[str, ...] = ("description", "name", "label", "title")
SALARY_OBJECT_KEYS: tuple[str, ...] = ("label", "description", "currencyLabel", "name")
