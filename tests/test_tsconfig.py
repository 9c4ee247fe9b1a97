"""Tests for reading tsconfig files."""

import json
from pathlib import Path

import pytest

from extcompat.codes import InputCode
from extcompat._internal.typescript.tsconfig import (
    CompilerOptions,
    ConfigError,
    load_compiler_options,
    read_config_file,
    strip_jsonc,
)


def test_strip_comments_and_trailing_commas():
    text = """
    {
      // line comment
      "a": 1, /* block
      comment */
      "b": [1, 2,],
    }
    """
    assert json.loads(strip_jsonc(text)) == {"a": 1, "b": [1, 2]}


def test_comment_markers_inside_strings_are_kept():
    text = '{"url": "http://example.com/*x*/", "glob": "src/**", "q": "a\\"//b",}'
    assert json.loads(strip_jsonc(text)) == {
        "url": "http://example.com/*x*/",
        "glob": "src/**",
        "q": 'a"//b',
    }


def test_fixture_tsconfig_loads(sample_package):
    options = load_compiler_options(sample_package / "tsconfig.json")
    assert options.strict is True
    assert options.types is None
    assert options.model_extra["module"] == "commonjs"


def test_extends_child_wins(tmp_path):
    base = tmp_path / "base.json"
    base.write_text('{"compilerOptions": {"strict": true, "allowJs": true, "baseUrl": "lib"}}', encoding="utf-8")
    child = tmp_path / "app" / "tsconfig.json"
    child.parent.mkdir()
    child.write_text('{"extends": "../base", "compilerOptions": {"allowJs": false}}', encoding="utf-8")

    options = load_compiler_options(child)
    assert options.strict is True
    assert options.allow_js is False
    # baseUrl stays relative to the file that declared it
    assert Path(options.base_url) == (tmp_path / "lib").resolve()


def test_paths_without_base_url_are_relative_to_their_config(tmp_path):
    config = tmp_path / "tsconfig.json"
    config.write_text('{"compilerOptions": {"paths": {"@app/*": ["src/*"]}}}', encoding="utf-8")
    options = load_compiler_options(config)
    assert options.paths == {"@app/*": ["src/*"]}
    assert Path(options.paths_base_path) == tmp_path.resolve()


def test_circular_extends_is_an_error(tmp_path):
    (tmp_path / "a.json").write_text('{"extends": "./b.json"}', encoding="utf-8")
    (tmp_path / "b.json").write_text('{"extends": "./a.json"}', encoding="utf-8")
    with pytest.raises(ConfigError):
        load_compiler_options(tmp_path / "a.json")


def test_non_object_config_is_a_parse_error(tmp_path):
    config = tmp_path / "tsconfig.json"
    config.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError) as excinfo:
        read_config_file(config)
    assert excinfo.value.code is InputCode.CONFIG_PARSE_ERROR
    assert isinstance(excinfo.value, ValueError)


def test_invalid_json_is_a_parse_error(tmp_path):
    config = tmp_path / "tsconfig.json"
    config.write_text('{"compilerOptions": {', encoding="utf-8")
    with pytest.raises(ConfigError, match="Failed to parse"):
        load_compiler_options(config)


def test_missing_compiler_options_gives_defaults(tmp_path):
    config = tmp_path / "tsconfig.json"
    config.write_text("{}", encoding="utf-8")
    assert load_compiler_options(config) == CompilerOptions()


def test_null_checks_default_to_strict():
    assert CompilerOptions().null_checks is False
    assert CompilerOptions(strict=True).null_checks is True
    assert CompilerOptions.model_validate({"strict": True, "strictNullChecks": False}).null_checks is False
    assert CompilerOptions.model_validate({"strictNullChecks": True}).null_checks is True


def test_fixture_tsconfig_enables_null_checks(sample_package):
    assert load_compiler_options(sample_package / "tsconfig.json").null_checks is True
