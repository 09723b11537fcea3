import pytest

from app.utils.rules_loader import RulesConfigError, load_config, load_knowledge_base


RULES_YAML = """
options:
  preserve_structure: true
  knowledge_base: kb.md
ignore:
  os_defaults: true
  files: ["skip.me"]
  extensions: [".LOG"]
  folders: ["node_modules"]
rules:
  - pattern: ".*invoice.*\\\\.pdf$"
    target: Documents/Finance/Invoices
  - pattern: "\\\\.png$"
    target: Pictures
gpt:
  enabled: true
  api_key: secret
  model: llama3.2
  instructions: Sort my downloads.
"""


def test_load_config(tmp_path):
    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text(RULES_YAML)

    config = load_config(rules_file)

    assert config.options.preserve_structure is True
    assert config.options.knowledge_base == "kb.md"
    assert config.ignore.os_defaults is True
    assert config.ignore.files == {"skip.me"}
    assert config.ignore.extensions == {".log"}
    assert [rule.destination for rule in config.rules] == ["Documents/Finance/Invoices", "Pictures"]
    assert config.rules[0].pattern == r".*invoice.*\.pdf$"
    assert config.suggestions.enabled is True
    assert config.suggestions.model == "llama3.2"
    assert config.suggestions.instructions == "Sort my downloads."


def test_empty_file_gives_defaults(tmp_path):
    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text("")

    config = load_config(rules_file)

    assert config.rules == []
    assert config.suggestions.enabled is False
    assert config.options.preserve_structure is False


def test_empty_sections_take_defaults(tmp_path):
    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text("options:\nignore:\nrules:\ngpt:\n")

    config = load_config(rules_file)

    assert config.rules == []
    assert config.ignore.files == set()
    assert config.options.knowledge_base == ""
    assert config.suggestions.enabled is False


def test_empty_keys_inside_section_take_defaults(tmp_path):
    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text("ignore:\n  os_defaults: true\n  files:\n  extensions:\n")

    config = load_config(rules_file)

    assert config.ignore.os_defaults is True
    assert config.ignore.files == set()
    assert config.ignore.extensions == set()


def test_missing_file(tmp_path):
    with pytest.raises(RulesConfigError, match="couldn't open"):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text("rules: [unclosed\n")

    with pytest.raises(RulesConfigError, match="Invalid YAML"):
        load_config(rules_file)


def test_invalid_pattern_is_fatal(tmp_path):
    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text('rules:\n  - pattern: "([bad"\n    target: X\n')

    with pytest.raises(RulesConfigError, match="invalid pattern"):
        load_config(rules_file)


def test_top_level_must_be_mapping(tmp_path):
    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text("- just\n- a list\n")

    with pytest.raises(RulesConfigError):
        load_config(rules_file)


def test_knowledge_base_relative_to_base_dir(tmp_path):
    (tmp_path / "kb.md").write_text("Invoices go to Finance.")

    assert load_knowledge_base("kb.md", base_dir=tmp_path) == "Invoices go to Finance."


def test_knowledge_base_missing_or_empty(tmp_path):
    assert load_knowledge_base("", base_dir=tmp_path) == ""
    assert load_knowledge_base(None) == ""
    assert load_knowledge_base(tmp_path / "missing.md") == ""


def test_knowledge_base_with_invalid_utf8(tmp_path):
    kb = tmp_path / "kb.md"
    kb.write_bytes(b"caf\xe9 notes")

    text = load_knowledge_base(kb)

    assert text.startswith("caf")
    assert text.endswith(" notes")
