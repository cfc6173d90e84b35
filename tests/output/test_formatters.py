"""Tests for output-mode dispatch."""

import json

from ringside.output.formatters import OutputSettings, format_result
from ringside.services.result import ServiceResult

ADDED = ServiceResult.success(
    "add", {"id": 7, "type": "wrestler", "name": "Sting", "status": "unemployed"}
)


class TestFormatResult:
    def test_json_mode(self) -> None:
        output = format_result(ADDED, settings=OutputSettings(json_output=True))
        parsed = json.loads(output)
        assert parsed["ok"] is True
        assert parsed["op"] == "add"
        assert parsed["data"]["name"] == "Sting"

    def test_json_beats_quiet(self) -> None:
        output = format_result(ADDED, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["data"]["id"] == 7

    def test_quiet_mode(self) -> None:
        assert format_result(ADDED, settings=OutputSettings(quiet=True)) == "OK: add"

    def test_default_is_rich(self) -> None:
        output = format_result(ADDED)
        assert output.startswith("OK")
        assert "name: Sting" in output
