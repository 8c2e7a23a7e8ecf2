"""Built-in sample jobs served when a provider yields nothing.

Fallback results are flagged on the outcome, are never cached, and never
debit quota.
"""

from datetime import date

from src.core.schemas import Job, SearchQuery
from src.pipeline.matcher import query_filters, run_filter_chain

FALLBACK_SOURCE = "mock"

SAMPLE_JOBS: tuple[Job, ...] = (
    Job(
        id="mock:1",
        title="Senior Frontend Developer",
        company="Tech Innovations Inc.",
        location="New York, USA",
        description=(
            "We are seeking an experienced Frontend Developer to build modern, "
            "responsive web applications using React and TypeScript."
        ),
        requirements=[
            "5+ years of experience in frontend development",
            "Expert knowledge of React, TypeScript, and Next.js",
        ],
        skills=["React", "TypeScript", "Next.js", "Redux", "CSS", "Git"],
        salary_range="$120,000 - $160,000",
        employment_type="full-time",
        posted_date="2026-02-10",
        apply_url="https://example.com/apply/1",
        source=FALLBACK_SOURCE,
    ),
    Job(
        id="mock:2",
        title="Full Stack Developer",
        company="Digital Solutions Ltd.",
        location="San Francisco, USA",
        description=(
            "Join our team building scalable web applications with both "
            "frontend and backend technologies."
        ),
        requirements=[
            "3+ years of full stack development experience",
            "Proficiency in React and Node.js",
        ],
        skills=["React", "Node.js", "PostgreSQL", "GraphQL", "AWS", "Docker"],
        salary_range="$100,000 - $140,000",
        employment_type="full-time",
        posted_date="2026-02-12",
        apply_url="https://example.com/apply/2",
        source=FALLBACK_SOURCE,
    ),
    Job(
        id="mock:3",
        title="React Developer",
        company="StartupHub",
        location="Remote",
        description=(
            "Fast-growing startup seeking a passionate React developer to help "
            "build the next generation of web applications."
        ),
        requirements=["2+ years of React development", "Good communication skills"],
        skills=["React", "JavaScript", "TypeScript", "Tailwind CSS", "REST API"],
        salary_range="$80,000 - $110,000",
        employment_type="full-time",
        posted_date="2026-02-13",
        apply_url="https://example.com/apply/3",
        source=FALLBACK_SOURCE,
    ),
    Job(
        id="mock:4",
        title="UI/UX Designer & Frontend Developer",
        company="Creative Agency",
        location="London, UK",
        description=(
            "Unique role combining design and development. Create user-friendly "
            "interfaces and bring them to life with code."
        ),
        requirements=["Strong portfolio demonstrating UI/UX skills"],
        skills=["Figma", "React", "CSS", "Design Systems", "Prototyping"],
        salary_range="£50,000 - £70,000",
        employment_type="full-time",
        posted_date="2026-02-09",
        apply_url="https://example.com/apply/4",
        source=FALLBACK_SOURCE,
    ),
    Job(
        id="mock:5",
        title="Frontend Developer Intern",
        company="BigTech Corp",
        location="Seattle, USA",
        description=(
            "Summer internship for aspiring frontend developers. Work on real "
            "projects and learn from experienced mentors."
        ),
        requirements=["Currently pursuing CS degree or related field"],
        skills=["HTML", "CSS", "JavaScript", "React", "Git"],
        salary_range="$25/hour",
        employment_type="internship",
        posted_date="2026-02-11",
        apply_url="https://example.com/apply/5",
        source=FALLBACK_SOURCE,
    ),
    Job(
        id="mock:6",
        title="Senior Software Engineer",
        company="Enterprise Solutions",
        location="Boston, USA",
        description=(
            "Lead development of enterprise-grade applications and mentor "
            "junior developers."
        ),
        requirements=["7+ years of software development experience"],
        skills=["Node.js", "TypeScript", "Microservices", "Kubernetes", "Redis"],
        salary_range="$150,000 - $190,000",
        employment_type="full-time",
        posted_date="2026-02-08",
        apply_url="https://example.com/apply/6",
        source=FALLBACK_SOURCE,
    ),
)


def fallback_jobs(query: SearchQuery, today: date | None = None) -> list[Job]:
    """Sample jobs narrowed by the query's filters and limit."""
    jobs = run_filter_chain(list(SAMPLE_JOBS), query_filters(query, today))
    return jobs[: query.batch_size]
