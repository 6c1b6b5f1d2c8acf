import pytest

from agent_hierarchy.utils.identifiers import (
    as_mapping,
    compact_string,
    normalize_identifier,
    to_string_list,
    unique_identifiers,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Agent_B", "agent_b"),
        ("  ClawcontrolCEO\t", "clawcontrolceo"),
        ("", ""),
        ("   ", ""),
        (None, ""),
    ],
)
def test_normalize_identifier(value, expected):
    assert normalize_identifier(value) == expected


def test_compact_string():
    assert compact_string(" manager ") == "manager"
    assert compact_string("") is None
    assert compact_string(None) is None
    assert compact_string(["manager"]) is None


def test_to_string_list_drops_blank_and_non_string_entries():
    assert to_string_list([" build ", "", None, 5, "review"]) == ["build", "review"]
    assert to_string_list(("a", "b")) == ["a", "b"]
    assert to_string_list("  ") == []
    assert to_string_list({"a": 1}) == []


def test_as_mapping():
    assert as_mapping({"a": 1}) == {"a": 1}
    assert as_mapping(["a"]) is None
    assert as_mapping(None) is None


def test_unique_identifiers_keeps_first_spelling():
    assert unique_identifiers(["Manager", "build", "MANAGER", " manager ", "Build"]) == ["Manager", "build"]
