"""Tests for classification prompt and JSON schema loading."""

import json
from pathlib import Path

import pytest

from docmanager.classification.exceptions import ClassifierError
from docmanager.classification.prompt_loader import load_json_schema, load_prompt_template


class TestLoadPromptTemplate:
    def test_loads_default_template(self) -> None:
        template = load_prompt_template()
        assert "{labels}" in template
        assert "{document_text}" in template

    def test_loads_custom_template(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.txt"
        custom.write_text("Pick one of {labels} for {document_text}")
        assert load_prompt_template(custom) == "Pick one of {labels} for {document_text}"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ClassifierError, match="prompt template"):
            load_prompt_template(tmp_path / "missing.txt")


class TestLoadJsonSchema:
    def test_default_schema_is_valid_json(self) -> None:
        schema = json.loads(load_json_schema())
        assert schema["type"] == "object"
        assert set(schema["required"]) >= {"document_type", "confidence"}

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ClassifierError, match="JSON schema"):
            load_json_schema(tmp_path / "missing.json")
