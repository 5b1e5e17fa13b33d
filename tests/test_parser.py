"""Tests for the NDJSON metrics parser."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from cuv.data.parser import (
    LineAssembler,
    MetricsFile,
    is_supported_file,
    parse_metrics_file,
    parse_metrics_line,
    parse_metrics_stream,
    parse_metrics_text,
    parse_multiple_metrics_streams,
)
from cuv.models.parsing import MultiFileProgress

LOC_FIELDS = {
    "loc_added_sum": 1,
    "loc_deleted_sum": 0,
    "loc_suggested_to_add_sum": 2,
    "loc_suggested_to_delete_sum": 0,
}


def _line(**fields: object) -> str:
    raw: dict[str, object] = {"day": "2025-10-01", "user_id": 7, **LOC_FIELDS}
    raw.update(fields)
    return json.dumps(raw)


async def _chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


class TestParseMetricsLine:
    def test_valid_line(self) -> None:
        record = parse_metrics_line(_line(user_login="a_b", used_chat=True))
        assert record is not None
        assert record.user_id == 7
        assert record.loc_added_sum == 1
        assert record.used_chat is True
        assert record.used_cli is False

    def test_invalid_json_is_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        assert parse_metrics_line("{nope") is None
        assert "Invalid JSON" in caplog.text

    def test_non_object_is_dropped(self) -> None:
        assert parse_metrics_line("[1, 2, 3]") is None
        assert parse_metrics_line('"text"') is None

    def test_deprecated_root_field_is_dropped(self) -> None:
        assert parse_metrics_line(_line(generated_loc_sum=5)) is None
        assert parse_metrics_line(_line(accepted_loc_sum=5)) is None

    def test_deprecated_feature_field_is_dropped(self) -> None:
        line = _line(totals_by_feature=[{"feature": "code_completion", "accepted_loc_sum": 3}])
        assert parse_metrics_line(line) is None

    def test_missing_loc_field_is_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        raw = {"day": "2025-10-01", "user_id": 7, **LOC_FIELDS}
        del raw["loc_suggested_to_delete_sum"]
        assert parse_metrics_line(json.dumps(raw)) is None
        assert "loc_suggested_to_delete_sum" in caplog.text

    def test_wrong_types_coerce_to_defaults(self) -> None:
        record = parse_metrics_line(
            _line(
                user_login=42,
                user_initiated_interaction_count="12",
                code_generation_activity_count=None,
                used_agent="yes",
                totals_by_ide="not-a-list",
                totals_by_feature=[{"feature": "chat_inline", "loc_added_sum": 2.9}, 5],
            )
        )
        assert record is not None
        assert record.user_login == ""
        assert record.user_initiated_interaction_count == 12
        assert record.code_generation_activity_count == 0
        assert record.used_agent is False
        assert record.totals_by_ide == []
        assert len(record.totals_by_feature) == 1
        assert record.totals_by_feature[0].loc_added_sum == 2

    def test_non_finite_numbers_coerce_to_zero(self) -> None:
        record = parse_metrics_line(
            _line(
                loc_added_sum=float("nan"),
                loc_deleted_sum=float("inf"),
                user_initiated_interaction_count="1e400",
                totals_by_feature=[{"feature": "chat_inline", "loc_added_sum": float("-inf")}],
            )
        )
        assert record is not None
        assert record.loc_added_sum == 0
        assert record.loc_deleted_sum == 0
        assert record.user_initiated_interaction_count == 0
        assert record.totals_by_feature[0].loc_added_sum == 0

    def test_plugin_version(self) -> None:
        record = parse_metrics_line(
            _line(
                totals_by_ide=[
                    {
                        "ide": "vscode",
                        "last_known_plugin_version": {
                            "sampled_at": "2025-10-01T00:00:00Z",
                            "plugin": "copilot-chat",
                            "plugin_version": "0.30.1",
                        },
                    },
                    {"ide": "vim"},
                ]
            )
        )
        assert record is not None
        plugin = record.totals_by_ide[0].last_known_plugin_version
        assert plugin is not None
        assert plugin.plugin_version == "0.30.1"
        assert record.totals_by_ide[1].last_known_plugin_version is None


class TestParseText:
    def test_skips_blank_and_bad_lines(self) -> None:
        text = "\n".join([_line(user_id=1), "", "   ", "{bad", _line(user_id=2), ""])
        records = parse_metrics_text(text)
        assert [r.user_id for r in records] == [1, 2]

    def test_sample_file(self, sample_metrics_path: Path) -> None:
        records = list(parse_metrics_file(sample_metrics_path))
        assert [r.user_id for r in records] == [101, 102, 103]
        assert records[0].user_login == "jöhn_acme"
        assert records[1].user_initiated_interaction_count == 3

    def test_deprecated_file_yields_nothing(self, deprecated_metrics_path: Path) -> None:
        assert list(parse_metrics_file(deprecated_metrics_path)) == []


class TestLineAssembler:
    def test_carries_partial_lines(self) -> None:
        assembler = LineAssembler()
        assert assembler.feed(b'{"a"') == []
        assert assembler.feed(b":1}\n{") == ['{"a":1}']
        assert assembler.feed(b'"b":2}') == []
        assert assembler.flush() == ['{"b":2}']

    def test_split_multibyte_character(self) -> None:
        encoded = "jöhn\n".encode()
        split = encoded.index(b"\xc3") + 1
        assembler = LineAssembler()
        assert assembler.feed(encoded[:split]) == []
        assert assembler.feed(encoded[split:]) == ["jöhn"]
        assert assembler.flush() == []


class TestParseStream:
    @pytest.mark.asyncio
    async def test_stream_with_progress(self) -> None:
        payload = (_line(user_id=1) + "\n" + _line(user_id=2)).encode()
        counts: list[int] = []
        records = await parse_metrics_stream(
            _chunks(payload[:30], payload[30:]), on_progress=counts.append
        )
        assert [r.user_id for r in records] == [1, 2]
        # The second record has no trailing newline, so it arrives on flush.
        assert counts[-1] == 2
        assert counts == sorted(counts)

    @pytest.mark.asyncio
    async def test_tiny_chunks_match_text_parse(self, sample_metrics_path: Path) -> None:
        data = sample_metrics_path.read_bytes()
        parts = [data[i : i + 7] for i in range(0, len(data), 7)]
        records = await parse_metrics_stream(_chunks(*parts))
        assert records == parse_metrics_text(data.decode())


class TestParseMultipleStreams:
    @pytest.mark.asyncio
    async def test_cumulative_progress(self, sample_metrics_path: Path) -> None:
        second = (_line(user_id=9) + "\n").encode()
        updates: list[MultiFileProgress] = []
        result = await parse_multiple_metrics_streams(
            [
                MetricsFile.from_path(sample_metrics_path, chunk_size=128),
                MetricsFile.from_bytes("extra.ndjson", second),
            ],
            on_progress=updates.append,
        )
        assert len(result.metrics) == 4
        assert result.errors == []
        assert updates[-1].current_file == 2
        assert updates[-1].total_files == 2
        assert updates[-1].file_name == "extra.ndjson"
        assert updates[-1].records_processed == 4

    @pytest.mark.asyncio
    async def test_failing_file_is_recorded(self, tmp_path: Path) -> None:
        good = MetricsFile.from_bytes("good.ndjson", (_line(user_id=3) + "\n").encode())
        missing = MetricsFile.from_path(tmp_path / "missing.ndjson")
        result = await parse_multiple_metrics_streams([missing, good])
        assert [r.user_id for r in result.metrics] == [3]
        assert len(result.errors) == 1
        assert result.errors[0].file_index == 1
        assert result.errors[0].file_name == "missing.ndjson"


def test_is_supported_file() -> None:
    assert is_supported_file("report.ndjson")
    assert is_supported_file("REPORT.JSON")
    assert not is_supported_file("report.csv")
    assert not is_supported_file("ndjson")


class TestDamagedInput:
    @pytest.mark.asyncio
    async def test_non_finite_line_keeps_later_records(self) -> None:
        data = "\n".join(
            [_line(user_id=1), _line(user_id=2, loc_added_sum=float("inf")), _line(user_id=3)]
        ).encode()
        result = await parse_multiple_metrics_streams([MetricsFile.from_bytes("a.ndjson", data)])
        assert [r.user_id for r in result.metrics] == [1, 2, 3]
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_invalid_utf8_stays_inside_its_line(self) -> None:
        damaged = _line(user_id=2, user_login="x").encode().replace(b'"x"', b'"\xff"')
        broken = b'{"day": \xfe}'
        data = b"\n".join([_line(user_id=1).encode(), damaged, broken, _line(user_id=3).encode()])
        result = await parse_multiple_metrics_streams([MetricsFile.from_bytes("a.ndjson", data)])
        assert [r.user_id for r in result.metrics] == [1, 2, 3]
        assert result.metrics[1].user_login == "\ufffd"
        assert result.errors == []

    def test_invalid_utf8_in_file(self, tmp_path: Path) -> None:
        path = tmp_path / "damaged.ndjson"
        path.write_bytes(b"\xff\xfe garbage\n" + _line(user_id=5).encode() + b"\n")
        assert [r.user_id for r in parse_metrics_file(path)] == [5]
