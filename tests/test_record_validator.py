"""Tests for whole-record validation."""

import pytest

from cv_normalizer.normalization.record_validator import RecordValidator
from cv_normalizer.options.catalog import FormOptions
from cv_normalizer.schemas.candidate import CandidateRecord


@pytest.fixture
def validator() -> RecordValidator:
    """A validator on the shipped catalog."""
    return RecordValidator(FormOptions.default())


@pytest.fixture
def messy_record() -> CandidateRecord:
    """A record with something to fix in most fields."""
    return CandidateRecord.from_raw(
        {
            "email": "not-an-email",
            "country_code": "41",
            "linkedinUrl": "linkedin.com/in/jane",
            "githubUrl": "https://github.com/jane",
            "portfolioUrl": "  ",
            "contact_address": {"city": "Zurich", "country": "schweiz"},
            "education_history": [
                {
                    "degreeType": "Master of Accounting",
                    "generalField": "Informatik",
                    "startDate": "9/2016",
                    "endDate": "2018",
                    "country": "Deutschland",
                }
            ],
            "professional_experience": [
                {
                    "positionName": "Engineer",
                    "positionType": "full time",
                    "startDate": "03/2019",
                    "endDate": "Present",
                    "country": "US",
                },
                {"positionName": "Tutor", "country": "Atlantis", "startDate": "Spring 2015"},
            ],
            "technical_skills": [{"name": "Python", "level": "expert"}],
            "soft_skills": [
                {"name": "Teamwork", "level": "strong"},
                {"name": " Project Management ", "level": "Advanced"},
            ],
            "industry_specific_skills": [
                {"industry": "banking", "name": "Risk Models", "level": "Wizard"}
            ],
            "base_languages": [
                {"language": "German", "proficiency": "Muttersprache"},
                {"language": "English", "proficiency": "fluent"},
            ],
            "certifications": [
                {"name": "AWS SAA", "url": "aws.amazon.com/verify/1", "dateObtained": "6/2022"}
            ],
            "desired_duration_months": "permanent",
            "desired_job_types": ["full time", "Full-time", "Astronaut"],
            "desired_locations": ["schweiz", "Remote"],
            "desired_industries": ["fintech", "Space Mining"],
        }
    )


class TestContactFields:
    """Tests for contact fields."""

    def test_contact_corrections(
        self, validator: RecordValidator, messy_record: CandidateRecord
    ) -> None:
        """Test email, phone prefix and URLs."""
        corrected, corrections = validator.validate(messy_record)

        assert corrected.email is None
        assert corrected.country_code == "+41"
        assert corrected.linkedin_url == "https://linkedin.com/in/jane"
        assert corrected.github_url == "https://github.com/jane"
        assert corrected.portfolio_url is None
        assert any(line.startswith("email:") for line in corrections)
        assert any(line.startswith("linkedinUrl:") for line in corrections)

    def test_address_country(
        self, validator: RecordValidator, messy_record: CandidateRecord
    ) -> None:
        """Test the address country is mapped."""
        corrected, _ = validator.validate(messy_record)

        assert corrected.contact_address is not None
        assert corrected.contact_address.country == "Switzerland"
        assert corrected.contact_address.city == "Zurich"


class TestEntries:
    """Tests for education and experience entries."""

    def test_education(self, validator: RecordValidator, messy_record: CandidateRecord) -> None:
        """Test degree, field, dates and country."""
        corrected, corrections = validator.validate(messy_record)
        edu = corrected.education_history[0]

        assert edu.degree_type == "Master"
        assert edu.general_field == "Computer Science & IT"
        assert edu.start_date == "2016-09"
        assert edu.end_date == "2018-01"
        assert edu.country == "Germany"
        assert any("associate-vs-master" in line for line in corrections)

    def test_experience(self, validator: RecordValidator, messy_record: CandidateRecord) -> None:
        """Test position type, dates and countries."""
        corrected, corrections = validator.validate(messy_record)
        first, second = corrected.professional_experience

        assert first.position_type == "Full-time"
        assert first.start_date == "2019-03"
        assert first.end_date == "present"
        assert first.country == "United States"
        assert second.country is None
        assert second.start_date == "Spring 2015"
        assert any("'Atlantis' is not a known countries value" in line for line in corrections)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("Industry", "industrial"), ("Academic", "academic"), ("university", "academic")],
    )
    def test_experience_type(self, validator: RecordValidator, raw: str, expected: str) -> None:
        """Test the experience type is mapped onto the closed set."""
        record = CandidateRecord.from_raw(
            {"professional_experience": [{"positionName": "Analyst", "experienceType": raw}]}
        )

        corrected, _ = validator.validate(record)

        assert corrected.professional_experience[0].experience_type == expected

    def test_unknown_experience_type_cleared(self, validator: RecordValidator) -> None:
        """Test free text outside the experience types is cleared and logged."""
        record = CandidateRecord.from_raw(
            {
                "professional_experience": [
                    {"positionName": "Analyst", "experienceType": "Corporate job at a bank"}
                ]
            }
        )

        corrected, corrections = validator.validate(record)

        assert corrected.professional_experience[0].experience_type is None
        assert corrections == [
            "professional_experience[0].experienceType: 'Corporate job at a bank' "
            "is not a known experience_types value, cleared"
        ]

    def test_diploma_degree(self, validator: RecordValidator) -> None:
        """Test a diploma title is not recorded as an Associate degree."""
        record = CandidateRecord.from_raw(
            {"education_history": [{"degreeType": "Diploma in Fashion Design"}]}
        )

        corrected, corrections = validator.validate(record)

        assert corrected.education_history[0].degree_type == "Diploma"
        assert any("associate-vs-diploma" in line for line in corrections)


class TestSkillsAndLanguages:
    """Tests for skills, languages and certifications."""

    def test_skill_levels(self, validator: RecordValidator, messy_record: CandidateRecord) -> None:
        """Test skill levels are mapped or cleared."""
        corrected, _ = validator.validate(messy_record)

        assert corrected.technical_skills[0].level == "Expert"
        assert corrected.soft_skills[0].level == "Advanced"
        industry = corrected.industry_specific_skills[0]
        assert industry.industry == "Finance"
        assert industry.level is None

    def test_soft_skill_exclusions(
        self, validator: RecordValidator, messy_record: CandidateRecord
    ) -> None:
        """Test hard skills listed as soft skills are removed."""
        corrected, corrections = validator.validate(messy_record)

        assert [s.name for s in corrected.soft_skills] == ["Teamwork"]
        assert any("Project Management" in line for line in corrections)

    def test_language_proficiency(
        self, validator: RecordValidator, messy_record: CandidateRecord
    ) -> None:
        """Test multilingual proficiency descriptors."""
        corrected, _ = validator.validate(messy_record)

        assert [lang.proficiency for lang in corrected.base_languages] == ["Native", "C1"]

    def test_certifications(
        self, validator: RecordValidator, messy_record: CandidateRecord
    ) -> None:
        """Test certification URL and dates."""
        corrected, _ = validator.validate(messy_record)
        cert = corrected.certifications[0]

        assert cert.url == "https://aws.amazon.com/verify/1"
        assert cert.date_obtained == "2022-06"


class TestPreferences:
    """Tests for preference fields."""

    def test_duration(self, validator: RecordValidator, messy_record: CandidateRecord) -> None:
        """Test the desired duration is mapped via synonyms."""
        corrected, _ = validator.validate(messy_record)

        assert corrected.desired_duration_months == "24+"

    def test_lists_mapped_and_filtered(
        self, validator: RecordValidator, messy_record: CandidateRecord
    ) -> None:
        """Test unmatched list elements and duplicates are dropped."""
        corrected, corrections = validator.validate(messy_record)

        assert corrected.desired_job_types == ["Full-time"]
        assert corrected.desired_locations == ["Switzerland", "Remote"]
        assert corrected.desired_industries == ["Banking & Finance"]
        assert "desired_job_types: dropped unknown value 'Astronaut'" in corrections
        assert "desired_industries: dropped unknown value 'Space Mining'" in corrections


class TestValidatorProperties:
    """Tests for purity and idempotence."""

    def test_input_not_mutated(
        self, validator: RecordValidator, messy_record: CandidateRecord
    ) -> None:
        """Test the input record is left untouched."""
        before = messy_record.model_dump()

        validator.validate(messy_record)

        assert messy_record.model_dump() == before

    def test_idempotent(self, validator: RecordValidator, messy_record: CandidateRecord) -> None:
        """Test re-validating a corrected record changes nothing."""
        once, _ = validator.validate(messy_record)
        twice, corrections = validator.validate(once)

        assert twice == once
        assert corrections == []

    def test_clean_record_has_no_corrections(self, validator: RecordValidator) -> None:
        """Test an already canonical record yields an empty log."""
        record = CandidateRecord.from_raw(
            {
                "email": "jane@example.com",
                "country_code": "+41",
                "professional_experience": [
                    {"positionType": "Full-time", "startDate": "2020-01", "country": "Germany"}
                ],
            }
        )

        corrected, corrections = validator.validate(record)

        assert corrected == record
        assert corrections == []

    def test_empty_record(self, validator: RecordValidator) -> None:
        """Test an empty record validates cleanly."""
        corrected, corrections = validator.validate(CandidateRecord())

        assert corrected == CandidateRecord()
        assert corrections == []
