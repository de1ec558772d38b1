"""Example: Parse a CV file with cv-normalizer."""

import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from cv_normalizer import CVParser, ParsingConfig, SourceDocument, UncertainField

# Load environment variables
load_dotenv()


def example_parse_text() -> None:
    """Demonstrate parsing CV text without a source file."""
    print("=" * 60)
    print("Example 1: Parse CV text")
    print("=" * 60)

    parser = CVParser(config=ParsingConfig.from_env())

    cv_text = """
    Jane Doe
    jane.doe@example.com | +41 79 123 45 67 | linkedin.com/in/janedoe
    Zurich, Switzerland

    EXPERIENCE
    Senior Data Engineer, Acme AG (Zurich)            03/2021 - Present
    - Built the streaming platform processing 2B events per day
    - Led a team of four engineers

    Data Engineering Intern, Globex (Basel)           06/2019 - 12/2019
    - Migrated nightly ETL jobs to Airflow

    EDUCATION
    MSc Computer Science, ETH Zurich                  2018 - 2020

    SKILLS
    Python, Spark, Kafka, SQL, Teamwork, Project Management
    Languages: German (native), English (fluent)
    """

    result = asyncio.run(parser.parse_text(cv_text, job_id="example-1"))

    record = result.record
    print(f"\nName: {record.contact_first_name} {record.contact_last_name}")
    print(f"Years of experience: {record.years_of_experience}")
    print(f"Desired locations: {record.desired_locations}")
    print("\nCorrections:")
    for line in result.corrections:
        print(f"  - {line}")
    print("\nInferences:")
    for line in result.inferences:
        print(f"  - {line}")
    print(f"\nTokens used: {result.tokens_used}")


def example_parse_file(path: Path) -> None:
    """Demonstrate parsing a PDF or DOCX file with a targeted second pass."""
    print("\n" + "=" * 60)
    print(f"Example 2: Parse {path.name}")
    print("=" * 60)

    config = ParsingConfig.from_env(
        uncertain_fields=(
            UncertainField(
                field="desired_duration_months",
                options=("1-3", "3-6", "6-12", "12-24", "24+"),
                instruction="How many months is the candidate looking to work for?",
            ),
        ),
    )
    parser = CVParser(config=config)
    document = SourceDocument.from_bytes(path.read_bytes(), path.name)

    result = asyncio.run(parser.parse_document(document, job_id="example-2"))

    print(json.dumps(result.record.to_storage(), indent=2, ensure_ascii=False))
    if result.profile_picture is not None:
        print(f"\nProfile picture found (confidence {result.profile_picture.confidence})")
    for name, refinement in result.refinements.items():
        print(f"Second pass {name}: {refinement.value!r} (applied={refinement.applied})")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    example_parse_text()
    if len(sys.argv) > 1:
        example_parse_file(Path(sys.argv[1]))
