"""Tests for row normalization."""

import pytest

from job_ingest.ingest.normalizer import (
    clean_description,
    normalize_job_type,
    normalize_remote_type,
    normalize_row,
    parse_salary,
    pick,
)


class TestRejection:
    def test_missing_title_rejected(self):
        assert normalize_row({"company": "Acme"}) is None

    def test_missing_company_rejected(self):
        assert normalize_row({"title": "Engineer", "location": "NYC"}) is None

    def test_blank_and_sentinel_values_rejected(self):
        assert normalize_row({"title": "   ", "company": "Acme"}) is None
        assert normalize_row({"title": "Engineer", "company": "None"}) is None

    def test_non_mapping_rejected(self):
        assert normalize_row(["Engineer", "Acme"]) is None
        assert normalize_row(None) is None

    def test_rejected_whichever_alias_supplies_the_rest(self):
        row = {"Title": "Engineer", "job_url": "https://x", "Location": "Remote"}
        assert normalize_row(row) is None


class TestAliases:
    def test_first_alias_wins(self):
        row = {"job_title": "Data Engineer", "title": "Engineer", "company": "Acme"}
        assert normalize_row(row).title == "Data Engineer"

    def test_empty_alias_falls_through(self):
        row = {"job_title": "", "title": "Engineer", "company_name": None, "companyName": "Acme"}
        job = normalize_row(row)
        assert job.title == "Engineer"
        assert job.company == "Acme"

    def test_values_are_trimmed(self):
        job = normalize_row({"title": "  Engineer ", "company": "\tAcme\n"})
        assert job.title == "Engineer"
        assert job.company == "Acme"

    def test_nested_path_alias(self):
        row = {
            "title": "Engineer",
            "company": {"name": "Acme"},
            "salary": {"min": "100000", "max": "150000"},
        }
        job = normalize_row(row)
        assert job.company == "Acme"
        assert job.salary_min == 100000
        assert job.salary_max == 150000

    def test_flat_slash_key(self):
        job = normalize_row({"title": "Engineer", "company/name": "Acme"})
        assert job.company == "Acme"

    def test_numbers_are_stringified(self):
        job = normalize_row({"title": "Engineer", "company": "Acme", "jobId": 12345})
        assert job.source_job_id == "12345"

    def test_pick_returns_empty_when_nothing_usable(self):
        assert pick({"a": None, "b": "None", "c": {"x": 1}}, ("a", "b", "c")) == ""


class TestSource:
    def test_default_source(self):
        job = normalize_row({"title": "Engineer", "company": "Acme"})
        assert job.source == "linkedin"

    def test_caller_default_source(self):
        job = normalize_row({"title": "Engineer", "company": "Acme"}, default_source="indeed")
        assert job.source == "indeed"

    def test_row_source_overrides_default(self):
        job = normalize_row({"title": "Engineer", "company": "Acme", "source": "greenhouse"}, "indeed")
        assert job.source == "greenhouse"


class TestSalary:
    def test_currency_and_separators(self):
        assert parse_salary("$95,000+") == 95000

    def test_non_numeric(self):
        assert parse_salary("Competitive") is None
        assert parse_salary("") is None

    def test_decimal(self):
        assert parse_salary("45.50/hr") == 45.5

    def test_row_salary(self):
        job = normalize_row({"title": "Engineer", "company": "Acme", "salaryMin": "$95,000+", "salaryMax": "Competitive"})
        assert job.salary_min == 95000
        assert job.salary_max is None


class TestJobType:
    @pytest.mark.parametrize("raw, expected", [
        ("Full-Time", "full-time"),
        ("FULL_TIME", "full-time"),
        ("full time", "full-time"),
        ("Part-time", "part-time"),
        ("Contract", "contract"),
        ("INTERNSHIP", "internship"),
    ])
    def test_known_types(self, raw, expected):
        assert normalize_job_type(raw) == expected

    def test_unknown_passes_through(self):
        assert normalize_job_type("freelance") == "freelance"

    def test_empty(self):
        assert normalize_job_type("") is None

    def test_row_job_type(self):
        full = normalize_row({"title": "Engineer", "company": "Acme", "employmentType": "Full-Time"})
        free = normalize_row({"title": "Engineer", "company": "Acme", "employmentType": "freelance"})
        assert full.job_type == "full-time"
        assert free.job_type == "freelance"


class TestRemoteType:
    @pytest.mark.parametrize("raw, expected", [
        ("Remote", "remote"),
        ("On-site", "on-site"),
        ("ONSITE", "on-site"),
        ("Hybrid", "hybrid"),
        ("true", "remote"),
    ])
    def test_known_types(self, raw, expected):
        assert normalize_remote_type(raw) == expected

    @pytest.mark.parametrize("raw", ["", "None", "false", "FALSE"])
    def test_no_information(self, raw):
        assert normalize_remote_type(raw) is None

    def test_boolean_field(self):
        remote = normalize_row({"title": "Engineer", "company": "Acme", "workRemoteAllowed": True})
        onsite = normalize_row({"title": "Engineer", "company": "Acme", "workRemoteAllowed": False})
        assert remote.remote_type == "remote"
        assert onsite.remote_type is None


class TestDescription:
    def test_html_is_stripped(self):
        job = normalize_row({
            "title": "Engineer",
            "company": "Acme",
            "descriptionHtml": "<p>Build <b>Python</b> services.</p><ul><li>AWS</li></ul>",
        })
        assert job.jd_raw.startswith("<p>")
        assert "<" not in job.jd_clean
        assert "Python" in job.jd_clean
        assert "AWS" in job.jd_clean

    def test_plain_text_kept(self):
        assert clean_description("Build Python services.") == "Build Python services."

    def test_missing_description(self):
        job = normalize_row({"title": "Engineer", "company": "Acme"})
        assert job.jd_raw is None
        assert job.jd_clean is None
