"""Tests for cross-reference extraction heuristics."""

import pytest

from loadout.crossref import (
    CrossRef,
    DetectionMethod,
    build_reference_map,
    collect_crossrefs,
    extract_backtick_context,
    extract_natural_language,
    extract_references,
    extract_related_tables,
    extract_xml_tags,
    filter_known,
)


def test_extracts_xml_crossrefs_with_line_numbers():
    content = (
        "<crossrefs>\n"
        '  <see ref="dev-workflow">Commit format</see>\n'
        '  <see ref="bdd">Acceptance criteria</see>\n'
        "</crossrefs>\n"
    )

    refs = extract_xml_tags(content)

    assert refs == [
        CrossRef("dev-workflow", 2, DetectionMethod.XML_TAG),
        CrossRef("bdd", 3, DetectionMethod.XML_TAG),
    ]


def test_xml_tag_requires_lowercase_slug():
    assert extract_xml_tags('<see ref="Not-A-Slug">') == []
    assert extract_xml_tags('<see ref="trailing-">') == []


def test_related_table_requires_lowercase_slug():
    assert extract_related_tables("## Related skills\n| `Voice` | tone |\n") == []


def test_context_heuristics_capture_mixed_case_names():
    refs = extract_references("Load Voice first\nUse the `Voice` skill\n", "writer")

    assert refs == [
        CrossRef("Voice", 2, DetectionMethod.BACKTICK_CONTEXT),
        CrossRef("Voice", 1, DetectionMethod.NATURAL_LANGUAGE),
    ]


def test_multiple_xml_tags_on_one_line():
    refs = extract_xml_tags('<see ref="a"></see><see ref="b"></see>')

    assert [r.target for r in refs] == ["a", "b"]
    assert all(r.line == 1 for r in refs)


def test_backtick_with_keyword_before():
    refs = extract_backtick_context("invoke `skill-review` on the result")

    assert refs == [CrossRef("skill-review", 1, DetectionMethod.BACKTICK_CONTEXT)]


def test_backtick_with_keyword_after():
    refs = extract_backtick_context("Pair it with `voice`, a skill for tone")

    assert refs == [CrossRef("voice", 1, DetectionMethod.BACKTICK_CONTEXT)]


def test_backtick_keyword_is_case_insensitive():
    refs = extract_backtick_context("LOAD `data-prep` before anything else")

    assert [r.target for r in refs] == ["data-prep"]


def test_backtick_without_keyword_is_ignored():
    assert extract_backtick_context("Run `make test` then `lint-all`") == []


def test_backtick_records_line_number():
    refs = extract_backtick_context("Line 1\nLine 2 with invoke `my-skill` here\nLine 3")

    assert len(refs) == 1
    assert refs[0].line == 2


def test_related_table_rows_under_related_heading():
    content = (
        "## Related skills\n"
        "\n"
        "| Skill | Purpose |\n"
        "|-------|---------|\n"
        "| `skill-craft` | Creating skills |\n"
        "| `skill-review` | Reviewing quality |\n"
        "\n"
        "## Other\n"
        "\n"
        "| `not-me` | outside the section |\n"
    )

    refs = extract_related_tables(content)

    assert refs == [
        CrossRef("skill-craft", 5, DetectionMethod.RELATED_TABLE),
        CrossRef("skill-review", 6, DetectionMethod.RELATED_TABLE),
    ]


def test_related_table_integration_heading_and_non_table_lines():
    content = (
        "### Integration points\n"
        "See `prose-only` for background.\n"
        "| `tabled` | integration tests |\n"
    )

    refs = extract_related_tables(content)

    assert [(r.target, r.line) for r in refs] == [("tabled", 3)]


def test_natural_language_patterns():
    content = (
        "You should invoke the skill-review skill to verify quality\n"
        "Load voice first before editing articles\n"
        "Use the formatter skill afterwards\n"
        "Then invoke linter on every file\n"
    )

    refs = extract_natural_language(content)

    assert [(r.target, r.line) for r in refs] == [
        ("skill-review", 1),
        ("voice", 2),
        ("formatter", 3),
        ("linter", 4),
    ]
    assert all(r.method is DetectionMethod.NATURAL_LANGUAGE for r in refs)


def test_natural_language_runs_pattern_by_pattern():
    content = "invoke linter on it\nload voice skill now\n"

    refs = extract_natural_language(content)

    # "load X skill" (pattern 2) is reported before "invoke X on" (pattern 4)
    assert [r.target for r in refs] == ["voice", "linter"]


def test_self_references_are_dropped():
    content = '<see ref="skill-craft">This skill</see>\n<see ref="other-skill">Another</see>\n'

    refs = extract_references(content, "skill-craft")

    assert refs == [CrossRef("other-skill", 2, DetectionMethod.XML_TAG)]


def test_heuristics_are_concatenated_without_dedup():
    content = '<see ref="voice">\nLoad voice first\n'

    refs = extract_references(content, "writer")

    assert refs == [
        CrossRef("voice", 1, DetectionMethod.XML_TAG),
        CrossRef("voice", 2, DetectionMethod.NATURAL_LANGUAGE),
    ]


@pytest.mark.parametrize(
    "content",
    [
        '<see ref="me">',
        "invoke `me` on this",
        "## Related skills\n| `me` | itself |",
        "Load me first. Use the me skill. invoke me on",
        "",
    ],
)
def test_extract_never_returns_owner(content):
    assert all(ref.target != "me" for ref in extract_references(content, "me"))


def test_crlf_line_endings_keep_line_numbers():
    refs = extract_references("intro\r\ninvoke `x-y` now\r\n", "owner")

    assert [(r.target, r.line) for r in refs] == [("x-y", 2)]


def test_filter_known_is_applied_by_caller():
    refs = extract_references('<see ref="real">\n<see ref="ghost">', "owner")

    assert [r.target for r in refs] == ["real", "ghost"]
    assert [r.target for r in filter_known(refs, {"real"})] == ["real"]


def test_build_reference_map():
    pairs = [
        (
            "skill-a",
            [
                CrossRef("skill-b", 1, DetectionMethod.XML_TAG),
                CrossRef("skill-c", 2, DetectionMethod.XML_TAG),
                CrossRef("skill-b", 3, DetectionMethod.NATURAL_LANGUAGE),
            ],
        ),
        ("skill-b", []),
    ]

    assert build_reference_map(pairs) == {"skill-a": {"skill-b", "skill-c"}, "skill-b": set()}


def test_collect_crossrefs_gives_every_skill_an_entry(make_skill):
    skills = [make_skill("alpha"), make_skill("beta")]
    bodies = {"alpha": '<see ref="beta">\n<see ref="alpha">\n<see ref="ghost">', "beta": "plain"}

    crossrefs = collect_crossrefs(skills, reader=lambda s: bodies[s.name])

    assert list(crossrefs) == ["alpha", "beta"]
    assert [r.target for r in crossrefs["alpha"]] == ["beta", "ghost"]
    assert crossrefs["beta"] == []


def test_collect_crossrefs_with_known_filter(make_skill):
    skills = [make_skill("alpha"), make_skill("beta")]
    bodies = {"alpha": '<see ref="beta">\n<see ref="ghost">', "beta": ""}

    crossrefs = collect_crossrefs(skills, reader=lambda s: bodies[s.name], known={"alpha", "beta"})

    assert [r.target for r in crossrefs["alpha"]] == ["beta"]
