from agent_hierarchy.schemas import FreeTextDocument
from agent_hierarchy.services.free_text import extract_document, extract_free_text_hierarchy, pick_names

BUILD_SOUL = """# SOUL.md - ClawcontrolBuild

## Identity
- **Name:** ClawcontrolBuild
- **Role:** Implementation engineer

## Reporting
You report to **ClawcontrolCEO** (only).
You delegate reviews to ClawcontrolManager.
You receive work orders from ClawcontrolManager.
"""


def test_extract_document_from_soul():
    record = extract_document(FreeTextDocument(path="agents/build/SOUL.md", content=BUILD_SOUL))

    assert record is not None
    assert record.id == "ClawcontrolBuild"
    assert record.reports_to == "ClawcontrolCEO"
    assert record.delegates_to == ["ClawcontrolManager"]
    assert record.receives_from == ["ClawcontrolManager"]


def test_extract_document_name_from_heading():
    content = "# Review: quality gate\n\nReports to: manager\n"
    record = extract_document(FreeTextDocument(path="agents/x/notes.md", content=content))

    assert record.id == "Review"
    assert record.reports_to == "manager"


def test_extract_document_name_from_path():
    record = extract_document(FreeTextDocument(path="agents/deployer/SOUL.md", content="Reports to the Manager."))

    assert record.id == "deployer"
    assert record.reports_to == "Manager"

    record = extract_document(FreeTextDocument(path="agents/Scout.md", content="Reports to the Manager."))
    assert record.id == "Scout"


def test_extract_document_without_relationships():
    content = "# Researcher\n\nYou read papers and summarise them.\n"

    assert extract_document(FreeTextDocument(path="agents/researcher.md", content=content)) is None


def test_extract_document_ignores_empty_targets():
    content = "Name: Lead\nReports to: none\nYou delegate tasks to Build, Review and the Deployer.\n"
    record = extract_document(FreeTextDocument(path="agents/lead.md", content=content))

    assert record.reports_to is None
    assert record.delegates_to == ["Build", "Review", "Deployer"]


def test_pick_names_splits_lists():
    assert pick_names("Build / Review; `Deployer` (on call).") == ["Build", "Review", "Deployer"]


def test_extract_free_text_hierarchy_merges_documents():
    documents = [
        FreeTextDocument(path="agents/build/SOUL.md", content="Name: Build\nYou delegate fixes to Review.\n"),
        FreeTextDocument(
            path="agents/build/ROLE.md",
            content="Name: BUILD\nReports to Manager.\nDelegate tests to review and Deployer.\n",
        ),
        FreeTextDocument(path="agents/empty.md", content="Nothing here."),
    ]
    extraction = extract_free_text_hierarchy(documents)

    assert extraction.warnings == []
    assert len(extraction.agents) == 1
    record = extraction.agents[0]
    assert record.id == "Build"
    assert record.reports_to == "Manager"
    assert record.delegates_to == ["Review", "Deployer"]
