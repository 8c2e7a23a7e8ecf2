"""Tests for the tolerant normalizer: raw provider records -> Job."""

from datetime import date

import pytest

from src.pipeline.normalizer import (
    dedupe_casefold,
    extract_text,
    flatten_texts,
    normalize,
    normalize_all,
    normalize_employment_type,
    normalize_salary,
    parse_posted_date,
    requirements_from_description,
    stable_job_id,
    strip_html,
)

TODAY = date(2026, 2, 14)


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


class TestExtractText:
    def test_string_stripped(self) -> None:
        assert extract_text("  Acme  ") == "Acme"

    def test_number(self) -> None:
        assert extract_text(42) == "42"

    def test_none_and_bool(self) -> None:
        assert extract_text(None) == ""
        assert extract_text(True) == ""

    def test_object_keys_in_order(self) -> None:
        value = {"label": "Sydney NSW", "name": "Sydney"}
        assert extract_text(value, ("label", "name")) == "Sydney NSW"
        assert extract_text(value, ("name", "label")) == "Sydney"

    def test_object_skips_empty_keys(self) -> None:
        assert extract_text({"name": "", "label": "Acme"}) == "Acme"

    def test_list_first_non_empty(self) -> None:
        assert extract_text(["", {"name": "Acme"}, "Other"]) == "Acme"

    def test_empty_object(self) -> None:
        assert extract_text({}) == ""


class TestFlattenTexts:
    def test_comma_string(self) -> None:
        assert flatten_texts("Python, SQL ,  ") == ["Python", "SQL"]

    def test_comma_split_disabled(self) -> None:
        assert flatten_texts("a, b", split_commas=False) == ["a, b"]

    def test_list_of_strings_and_objects(self) -> None:
        assert flatten_texts(["Python", {"name": "Docker"}, ""]) == ["Python", "Docker"]

    def test_none(self) -> None:
        assert flatten_texts(None) == []

    def test_commas_split_on_every_shape(self) -> None:
        expected = ["Python", "Go"]
        assert flatten_texts("Python, Go") == expected
        assert flatten_texts({"name": "Python, Go"}) == expected
        assert flatten_texts(["Python, Go"]) == expected
        assert flatten_texts([{"label": "Python, Go"}]) == expected

    def test_no_split_on_any_shape(self) -> None:
        assert flatten_texts({"name": "a, b"}, split_commas=False) == ["a, b"]
        assert flatten_texts(["a, b"], split_commas=False) == ["a, b"]


class TestSmallHelpers:
    def test_dedupe_casefold_keeps_first_spelling(self) -> None:
        assert dedupe_casefold(["Python", "python", "SQL"]) == ["Python", "SQL"]

    def test_strip_html(self) -> None:
        assert strip_html("<p>Build&nbsp;<b>APIs</b></p>\n\n now") == "Build APIs now"

    def test_stable_job_id_deterministic(self) -> None:
        a = stable_job_id("workday", "https://x/1", "Dev")
        assert a == stable_job_id("workday", "https://x/1", "Dev")
        assert a != stable_job_id("workday", "https://x/2", "Dev")
        assert len(a) == 16


class TestEmploymentType:
    @pytest.mark.parametrize(("raw", "expected"), [
        ("Full-time", "full-time"),
        ("FULL_TIME", "full-time"),
        ("Part time", "part-time"),
        ("Contract", "contract"),
        ("Casual/Vacation", "contract"),
        ("Temporary", "contract"),
        ("Freelance", "contract"),
        ("Internship", "internship"),
        (["Full time"], "full-time"),
        ({"label": "Part time"}, "part-time"),
        ("Volunteer", "full-time"),
        (None, "full-time"),
    ])
    def test_vocabulary(self, raw: object, expected: str) -> None:
        assert normalize_employment_type(raw) == expected


class TestPostedDate:
    def test_iso_datetime(self) -> None:
        assert parse_posted_date("2026-02-10T08:30:00Z") == "2026-02-10"

    def test_epoch_seconds(self) -> None:
        assert parse_posted_date(1770681600) == "2026-02-10"

    def test_epoch_millis(self) -> None:
        assert parse_posted_date(1770681600000) == "2026-02-10"

    def test_relative_text_unparsed(self) -> None:
        assert parse_posted_date("2 days ago") is None

    def test_invalid_calendar_date(self) -> None:
        assert parse_posted_date("2026-13-45") is None


class TestSalary:
    def test_two_element_range(self) -> None:
        assert normalize_salary(["$17.00", "$19.00"]) == "$17.00 - $19.00"

    def test_single_element(self) -> None:
        assert normalize_salary(["$90k"]) == "$90k"

    def test_object(self) -> None:
        assert normalize_salary({"label": "$100k - $120k"}) == "$100k - $120k"

    def test_missing(self) -> None:
        assert normalize_salary(None) == ""


class TestRequirementsFromDescription:
    def test_degree_and_years(self) -> None:
        reqs = requirements_from_description(
            "Bachelor's in CS required. 5+ years of experience with Python.",
        )
        assert reqs == [
            "Bachelor's degree or equivalent experience",
            "5+ years of experience",
        ]

    def test_nothing_found(self) -> None:
        assert requirements_from_description("Great team, free snacks") == []


# ---------------------------------------------------------------------------
# normalize per provider
# ---------------------------------------------------------------------------


class TestNormalizeLinkedIn:
    def test_full_record(self) -> None:
        raw = {
            "id": "3901",
            "title": "Senior Python Engineer",
            "companyName": "Acme",
            "location": "Berlin, Germany",
            "descriptionHtml": "<p>We need 5 years experience.</p>",
            "link": "https://www.linkedin.com/jobs/view/3901/",
            "salaryInfo": ["$17.00", "$19.00"],
            "jobFunction": "Engineering, Information Technology",
            "industries": "Software Development",
            "seniorityLevel": "Mid-Senior level",
            "applicantsCount": "87",
            "employmentType": "Full-time",
            "postedAt": "2026-02-10",
        }
        job = normalize(raw, "linkedin", TODAY)
        assert job.id == "linkedin:3901"
        assert job.company == "Acme"
        assert job.description == "We need 5 years experience."
        assert job.apply_url == "https://www.linkedin.com/jobs/view/3901/"
        assert job.salary_range == "$17.00 - $19.00"
        assert job.skills == ["Engineering", "Information Technology", "Software Development"]
        assert "Seniority Level: Mid-Senior level" in job.requirements
        assert "87 applicants" in job.requirements
        assert "5+ years of experience" in job.requirements
        assert job.posted_date == "2026-02-10"
        assert job.source == "linkedin"

    def test_empty_record_gets_defaults(self) -> None:
        job = normalize({}, "linkedin", TODAY)
        assert job.title == "No Title"
        assert job.company == "Unknown Company"
        assert job.location == "Location not specified"
        assert job.description == "No description available"
        assert job.salary_range == "Not specified"
        assert job.apply_url == "#"
        assert job.employment_type == "full-time"
        assert job.posted_date == "2026-02-14"
        assert job.id.startswith("linkedin:")

    def test_unparseable_date_uses_today(self) -> None:
        job = normalize({"postedAt": "3 weeks ago"}, "linkedin", TODAY)
        assert job.posted_date == "2026-02-14"


class TestNormalizeWorkday:
    def test_alternate_keys(self) -> None:
        raw = {
            "requisitionId": "R-100",
            "positionTitle": "Data Engineer",
            "organization": "Globex",
            "primaryLocation": "Remote - US",
            "jobDescription": "Degree in a related field preferred.",
            "externalJobUrl": "https://globex.wd1.myworkdayjobs.com/job/R-100",
            "compensation": {"label": "$120,000 - $140,000"},
            "timeType": "Part time",
            "qualifications": ["SQL", "Airflow"],
            "experienceLevel": "Senior",
            "datePosted": "2026-02-01",
        }
        job = normalize(raw, "workday", TODAY)
        assert job.id == "workday:R-100"
        assert job.title == "Data Engineer"
        assert job.company == "Globex"
        assert job.location == "Remote - US"
        assert job.apply_url == "https://globex.wd1.myworkdayjobs.com/job/R-100"
        assert job.salary_range == "$120,000 - $140,000"
        assert job.employment_type == "part-time"
        assert job.requirements[:3] == ["SQL", "Airflow", "Senior"]
        assert "Bachelor's degree or equivalent experience" in job.requirements
        assert job.posted_date == "2026-02-01"

    def test_missing_id_is_stable(self) -> None:
        raw = {"title": "Dev", "url": "https://x/1"}
        assert normalize(raw, "workday", TODAY).id == normalize(raw, "workday", TODAY).id


class TestNormalizeCareerOne:
    def test_careerone_style(self) -> None:
        raw = {
            "id": 77,
            "job_title": "Frontend Developer",
            "company_name": "Canva",
            "location": {"label": "Sydney NSW", "name": "Sydney"},
            "job_description": "React role",
            "URL": "https://www.careerone.com.au/jobview/77",
            "pay_description": "$110k - $130k",
            "skills": ["React", "TypeScript", "react"],
            "workType": ["Contract/Temp"],
            "created_at": "2026-02-12T00:00:00",
        }
        job = normalize(raw, "careerone", TODAY)
        assert job.id == "careerone:77"
        assert job.title == "Frontend Developer"
        assert job.company == "Canva"
        assert job.location == "Sydney NSW"
        assert job.salary_range == "$110k - $130k"
        assert job.skills == ["React", "TypeScript"]
        assert job.employment_type == "contract"
        assert job.posted_date == "2026-02-12"

    def test_seek_style_advertiser_object(self) -> None:
        raw = {
            "heading": "Backend Engineer",
            "advertiser": {"description": "Atlassian", "id": "1"},
            "content": "<div>Go and Kotlin</div>",
            "salary": {"currencyLabel": "AUD", "label": "$150k"},
        }
        job = normalize(raw, "careerone", TODAY)
        assert job.title == "Backend Engineer"
        assert job.company == "Atlassian"
        assert job.description == "Go and Kotlin"
        assert job.salary_range == "$150k"


class TestShapeEquivalence:
    @pytest.mark.parametrize("provider", ["linkedin", "workday", "careerone"])
    def test_string_and_name_object_agree(self, provider: str) -> None:
        plain = {"id": "1", "title": "Dev", "company": "Acme", "location": "Perth"}
        wrapped = {
            "id": "1",
            "title": "Dev",
            "company": {"name": "Acme"},
            "location": [{"name": "Perth"}],
        }
        assert normalize(plain, provider, TODAY) == normalize(wrapped, provider, TODAY)

    @pytest.mark.parametrize("provider", ["linkedin", "workday", "careerone"])
    @pytest.mark.parametrize("wrapped", [
        {"name": "Python, Go"},
        ["Python, Go"],
        [{"name": "Python, Go"}],
    ])
    def test_comma_skills_agree_across_shapes(self, provider: str, wrapped: object) -> None:
        plain = normalize({"id": "1", "skills": "Python, Go"}, provider, TODAY)
        other = normalize({"id": "1", "skills": wrapped}, provider, TODAY)
        assert plain.skills == other.skills


class TestNormalizeAll:
    def test_skips_non_objects(self) -> None:
        jobs = normalize_all([{"id": "1"}, "garbage", None, {"id": "2"}], "linkedin", TODAY)
        assert [j.id for j in jobs] == ["linkedin:1", "linkedin:2"]

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="No normalizer keys"):
            normalize({}, "indeed", TODAY)
