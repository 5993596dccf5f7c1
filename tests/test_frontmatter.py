import pytest

from loadout.errors import FrontmatterError
from loadout.frontmatter import Frontmatter, extract_yaml


def skill_md(fields: str, body: str = "# Body\n") -> str:
    return f"---\n{fields}---\n\n{body}"


def test_parse_minimal():
    fm = Frontmatter.parse(skill_md("name: test-skill\ndescription: A test skill\n"))

    assert fm.name == "test-skill"
    assert fm.description == "A test skill"
    assert fm.tags is None
    assert fm.pipeline is None


def test_parse_tool_fields_by_alias():
    fm = Frontmatter.parse(
        skill_md(
            "name: full-skill\n"
            "description: Full featured skill\n"
            "disable-model-invocation: true\n"
            "user-invocable: false\n"
            "allowed-tools: Read, Grep\n"
            "argument-hint: <file>\n"
            "license: MIT\n"
            "metadata:\n"
            "  author: someone\n"
            "unknown-field: ignored\n"
        )
    )

    assert fm.disable_model_invocation is True
    assert fm.user_invocable is False
    assert fm.allowed_tools == "Read, Grep"
    assert fm.argument_hint == "<file>"
    assert fm.license == "MIT"
    assert fm.metadata == {"author": "someone"}


def test_parse_multiline_description():
    fm = Frontmatter.parse(
        skill_md("name: folded\ndescription: >-\n  First line\n  continues here\n")
    )

    assert fm.description == "First line continues here"


def test_parse_tags_and_pipeline():
    fm = Frontmatter.parse(
        skill_md(
            "name: review\n"
            "description: Review a draft\n"
            "tags: [writing, quality]\n"
            "pipeline:\n"
            "  publish:\n"
            "    stage: review\n"
            "    order: 2\n"
            "    after: [draft]\n"
            "    before: [ship]\n"
        )
    )

    assert fm.tags == ["writing", "quality"]
    stage = fm.pipeline["publish"]
    assert (stage.stage, stage.order, stage.after, stage.before) == ("review", 2, ["draft"], ["ship"])
    assert fm.has_tags and fm.has_pipeline


def test_empty_tags_do_not_count_as_metadata():
    fm = Frontmatter.parse(skill_md("name: a\ndescription: Something\ntags: []\n"))

    assert not fm.has_tags


def test_empty_pipeline_map_counts_as_membership():
    fm = Frontmatter.parse(skill_md("name: a\ndescription: Something\npipeline: {}\n"))

    assert fm.pipeline == {}
    assert fm.has_pipeline


def test_negative_pipeline_order_is_rejected():
    content = skill_md(
        "name: a\ndescription: d\npipeline:\n  p:\n    stage: s\n    order: -1\n"
    )

    with pytest.raises(FrontmatterError, match="Invalid YAML frontmatter"):
        Frontmatter.parse(content)


def test_missing_delimiters():
    with pytest.raises(FrontmatterError, match="delimiters"):
        Frontmatter.parse("name: test\ndescription: no frontmatter\n")

    with pytest.raises(FrontmatterError, match="delimiters"):
        Frontmatter.parse("---\nname: test\ndescription: unterminated\n")


@pytest.mark.parametrize("missing", ["name", "description"])
def test_missing_required_field(missing):
    fields = {"name": "name: test\n", "description": "description: Test\n"}
    fields.pop(missing)

    with pytest.raises(FrontmatterError, match=f"Missing required field: {missing}"):
        Frontmatter.parse(skill_md("".join(fields.values())))


def test_invalid_yaml():
    with pytest.raises(FrontmatterError, match="Invalid YAML frontmatter"):
        Frontmatter.parse(skill_md("name: [unclosed\ndescription: x\n"))


def test_non_mapping_frontmatter():
    with pytest.raises(FrontmatterError, match="expected a mapping"):
        Frontmatter.parse(skill_md("- just\n- a list\n"))


def test_null_description_is_empty_string():
    fm = Frontmatter.parse(skill_md("name: a\ndescription:\n"))

    assert fm.description == ""


@pytest.mark.parametrize("name", ["a", "my-skill", "skill-1-2-3", "abc123"])
def test_valid_names(name):
    assert Frontmatter.parse(skill_md(f"name: {name}\ndescription: d\n")).name == name


@pytest.mark.parametrize(
    "name",
    ["My-Skill", "my_skill", "my--skill", "-my-skill", "my-skill-", "my skill", "my.skill"],
)
def test_invalid_names(name):
    with pytest.raises(FrontmatterError, match="Invalid skill name"):
        Frontmatter.parse(skill_md(f"name: {name}\ndescription: d\n"))


def test_name_length_limit():
    ok = "a" * 64
    assert Frontmatter.parse(skill_md(f"name: {ok}\ndescription: d\n")).name == ok

    with pytest.raises(FrontmatterError, match="Invalid skill name length: 65"):
        Frontmatter.parse(skill_md(f"name: {'a' * 65}\ndescription: d\n"))


def test_structural_parse_accepts_empty_description():
    # Reported later as a finding, not a parse failure
    fm = Frontmatter.parse(skill_md('name: a\ndescription: ""\n'))

    assert fm.description == ""


def test_strict_validation_checks_description_length():
    with pytest.raises(FrontmatterError, match="Invalid description length: 0"):
        Frontmatter(name="a", description="   ").validate_strict()

    with pytest.raises(FrontmatterError, match="Invalid description length: 1025"):
        Frontmatter(name="a", description="x" * 1025).validate_strict()

    Frontmatter(name="a", description="x" * 1024).validate_strict()


def test_strict_validation_checks_directory_name():
    fm = Frontmatter(name="skill-a", description="Something useful")

    fm.validate_strict("skill-a")
    with pytest.raises(FrontmatterError, match="does not match directory name 'skill-b'"):
        fm.validate_strict("skill-b")


def test_extract_yaml():
    content = "Preamble\n---\nname: a\n---\nbody\n---\n"

    assert extract_yaml(content) == "name: a"
