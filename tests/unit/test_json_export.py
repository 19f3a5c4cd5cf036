"""Unit tests for cuke_engine.exporters.json_export."""

import json

from cuke_engine.exporters.json_export import export_json, feature_to_dict, step_to_dict
from cuke_engine.models import Step
from cuke_engine.outline import expand_scenarios
from cuke_engine.parser import parse_feature


class TestStepToDict:
    def test_plain_step(self) -> None:
        assert step_to_dict(Step("Given", "x", 3)) == {
            "keyword": "Given",
            "text": "x",
            "line": 3,
            "docstring": None,
            "datatable": None,
        }

    def test_datatable_as_lists(self) -> None:
        data = step_to_dict(Step("Given", "x", 3, datatable=(("a", "b"),)))
        assert data["datatable"] == [["a", "b"]]


class TestFeatureToDict:
    def test_sample_feature(self, sample_feature_content: str) -> None:
        data = feature_to_dict(parse_feature(sample_feature_content))
        assert data["name"] == "User signs up for event"
        assert data["background"] == {"steps": [step_to_dict(Step("Given", "a logged in user", 3))]}
        assert data["scenarios"][0]["type"] == "scenario"
        assert len(data["scenarios"][0]["steps"]) == 5

    def test_outline(self, outline_feature_content: str) -> None:
        data = feature_to_dict(parse_feature(outline_feature_content))
        outline = data["scenarios"][0]
        assert data["tags"] == ["shopping"]
        assert data["background"] is None
        assert outline["type"] == "scenario_outline"
        assert outline["examples"][0]["name"] == "small"
        assert outline["examples"][1]["table_body"] == [["20", "5", "15"], ["5", "5", "0"]]

    def test_expanded_scenarios(self, outline_feature_content: str) -> None:
        feature = parse_feature(outline_feature_content)
        data = feature_to_dict(feature, expand_scenarios(feature))
        assert [s["type"] for s in data["scenarios"]] == ["scenario"] * 3
        assert "examples" not in data["scenarios"][0]


class TestExportJson:
    def test_valid_json(self, sample_feature_content: str) -> None:
        feature = parse_feature(sample_feature_content)
        output = export_json(feature)
        assert json.loads(output) == feature_to_dict(feature)

    def test_indent(self, sample_feature_content: str) -> None:
        output = export_json(parse_feature(sample_feature_content), indent=4)
        assert '\n    "name"' in output
