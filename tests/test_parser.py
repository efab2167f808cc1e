"""
Tests for the combat log file driver.
"""

import logging
import time
from dataclasses import replace

import pytest

from combatlog.config.settings import FramingPolicy
from combatlog.parser.errors import ArityError, DispatchError, FramingError, GrammarError
from combatlog.parser.events import UNSUPPORTED, Emote, SpellDamage
from combatlog.parser.parser import CombatLogParser, LineStatus, find_log_files
from combatlog.parser.tokenizer import EventDateTime
from tests.samples import EMOTE_BODY, SPELL_DAMAGE_BODY, make_line


class TestDecodeLine:
    """Test decoding single lines."""

    def test_emote_end_to_end(self, settings):
        parser = CombatLogParser(settings)
        result = parser.decode_line(
            '8/3 20:15:42.123  EMOTE,Player-1-ABC,"Thrall",0x0,0x0,Hello there'
        )

        assert result.status == LineStatus.DECODED
        assert result.ok
        assert result.timestamp == EventDateTime(
            month="8", day="3", hour="20", minute="15", second="42", ms="123"
        )
        assert result.event == Emote(
            source_guid="Player-1-ABC",
            source_name="Thrall",
            source_flags="0x0",
            source_raid_flags="0x0",
            text="Hello there",
        )
        assert result.event_type == "EMOTE"
        assert result.cause == ""

    def test_spell_damage_reference_line(self, settings):
        result = CombatLogParser(settings).decode_line(make_line(SPELL_DAMAGE_BODY))

        assert result.status == LineStatus.DECODED
        assert isinstance(result.event, SpellDamage)

    def test_nil_setting(self, nil_false_settings):
        result = CombatLogParser(nil_false_settings).decode_line(make_line(SPELL_DAMAGE_BODY))
        assert result.event.is_off_hand is False

    def test_unsupported(self, settings):
        result = CombatLogParser(settings).decode_line(make_line("UNKNOWN_EVENT,1,2,3"))

        assert result.status == LineStatus.UNSUPPORTED
        assert result.ok
        assert result.event == UNSUPPORTED
        assert result.event_type == "UNKNOWN_EVENT"
        assert result.remainder == "UNKNOWN_EVENT,1,2,3"

    def test_arity_failure(self, settings):
        line = make_line(SPELL_DAMAGE_BODY[: -len(",nil")])
        result = CombatLogParser(settings).decode_line(line, line_number=7)

        assert result.status == LineStatus.FAILED
        assert not result.ok
        assert isinstance(result.error, ArityError)
        assert result.line_number == 7
        assert result.line == line
        assert result.event_type == "SPELL_DAMAGE"
        assert result.timestamp is not None
        assert "Should have 38 fields, had: 37" in result.cause

    def test_grammar_failure(self, settings):
        result = CombatLogParser(settings).decode_line(make_line("SPELL_HEAL,,1"))

        assert result.status == LineStatus.FAILED
        assert isinstance(result.error, GrammarError)

    def test_dispatch_failure(self, settings):
        result = CombatLogParser(settings).decode_line(make_line("ENCOUNTER_END"))

        assert result.status == LineStatus.FAILED
        assert isinstance(result.error, DispatchError)
        assert result.event_type is None

    def test_framing_failure(self, settings):
        result = CombatLogParser(settings).decode_line("garbage")

        assert result.status == LineStatus.FAILED
        assert isinstance(result.error, FramingError)
        assert result.timestamp is None

    def test_trailing_data(self, settings):
        result = CombatLogParser(settings).decode_line(make_line(SPELL_DAMAGE_BODY + ",]"))

        assert result.status == LineStatus.TRAILING_DATA
        assert result.ok
        assert isinstance(result.event, SpellDamage)
        assert result.remainder == ",]"
        assert "Failed to parse remainder" in result.cause


class TestParseLines:
    """Test the line driver and its statistics."""

    def test_sample_lines(self, settings, sample_log_lines):
        parser = CombatLogParser(settings)
        results = list(parser.parse_lines(sample_log_lines))

        assert [r.status for r in results] == [
            LineStatus.DECODED,
            LineStatus.DECODED,
            LineStatus.DECODED,
            LineStatus.DECODED,
            LineStatus.UNSUPPORTED,
            LineStatus.UNSUPPORTED,
        ]

        stats = parser.get_stats()
        assert stats["lines_processed"] == 6
        assert stats["decoded"] == 4
        assert stats["unsupported"] == 2
        assert stats["failed"] == 0
        assert stats["event_types"]["ZONE_CHANGE"] == 1
        assert stats["event_types"]["SPELL_DAMAGE"] == 1

    def test_blank_lines_are_skipped(self, settings):
        parser = CombatLogParser(settings)
        results = list(parser.parse_lines(["", make_line(EMOTE_BODY), "   ", make_line(EMOTE_BODY)]))

        assert [r.line_number for r in results] == [2, 4]
        assert parser.lines_processed == 2

    def test_failures_do_not_stop_the_run(self, settings):
        lines = [
            make_line(EMOTE_BODY),
            make_line(SPELL_DAMAGE_BODY[: -len(",nil")]),
            make_line("SPELL_HEAL,,1"),
            make_line(EMOTE_BODY),
        ]
        parser = CombatLogParser(settings)
        results = list(parser.parse_lines(lines))

        assert len(results) == 4
        assert results[-1].status == LineStatus.DECODED
        assert [error["line_number"] for error in parser.parse_errors] == [2, 3]

    @pytest.mark.parametrize(
        "body",
        [
            "SPELL_HEAL,1" + "0" * 5000,
            "SPELL_HEAL," + "[" * 3000,
        ],
        ids=["long_digit_run", "deep_nesting"],
    )
    def test_pathological_cells_do_not_stop_the_run(self, settings, body):
        lines = [make_line(EMOTE_BODY), make_line(body), make_line(EMOTE_BODY)]
        parser = CombatLogParser(settings)
        results = list(parser.parse_lines(lines))

        assert [r.status for r in results] == [
            LineStatus.DECODED,
            LineStatus.FAILED,
            LineStatus.DECODED,
        ]
        assert isinstance(results[1].error, GrammarError)
        assert results[1].event_type == "SPELL_HEAL"

    def test_elapsed_excludes_consumer_time(self, settings):
        parser = CombatLogParser(settings)

        for _ in parser.parse_lines([make_line(EMOTE_BODY)] * 3):
            time.sleep(0.05)

        assert parser.elapsed < 0.05
        assert parser.get_stats()["elapsed"] == parser.elapsed

    def test_error_report_is_capped(self, settings):
        parser = CombatLogParser(replace(settings, max_reported_errors=2))
        list(parser.parse_lines([make_line("SPELL_HEAL,,1")] * 5))

        assert len(parser.parse_errors) == 2
        assert parser.get_stats()["failed"] == 5

    def test_trailing_data_is_logged(self, settings, caplog):
        parser = CombatLogParser(settings)

        with caplog.at_level(logging.WARNING, logger="combatlog.parser.parser"):
            results = list(parser.parse_lines([make_line(SPELL_DAMAGE_BODY + ",]")]))

        assert results[0].status == LineStatus.TRAILING_DATA
        assert "unparsed remainder" in caplog.text
        assert parser.parse_errors == []

    def test_reset(self, settings, sample_log_lines):
        parser = CombatLogParser(settings)
        list(parser.parse_lines(sample_log_lines))
        parser.reset()

        stats = parser.get_stats()
        assert stats["lines_processed"] == 0
        assert stats["event_types"] == {}


class TestFramingPolicy:
    """Test what happens to lines without a valid timestamp."""

    def test_first_line_aborts_by_default(self, settings):
        parser = CombatLogParser(settings)

        with pytest.raises(FramingError):
            list(parser.parse_lines(["not a combat log", make_line(EMOTE_BODY)]))

    def test_later_lines_continue_by_default(self, settings):
        parser = CombatLogParser(settings)
        results = list(parser.parse_lines([make_line(EMOTE_BODY), "broken", make_line(EMOTE_BODY)]))

        assert [r.status for r in results] == [
            LineStatus.DECODED,
            LineStatus.FAILED,
            LineStatus.DECODED,
        ]
        assert isinstance(results[1].error, FramingError)

    def test_continue(self, settings):
        parser = CombatLogParser(replace(settings, framing_policy=FramingPolicy.CONTINUE))
        results = list(parser.parse_lines(["broken", make_line(EMOTE_BODY)]))

        assert [r.status for r in results] == [LineStatus.FAILED, LineStatus.DECODED]

    def test_abort(self, settings):
        parser = CombatLogParser(replace(settings, framing_policy=FramingPolicy.ABORT))
        lines = iter([make_line(EMOTE_BODY), "broken", make_line(EMOTE_BODY)])

        with pytest.raises(FramingError):
            list(parser.parse_lines(lines))

        # The run stopped at the broken line
        assert next(lines) == make_line(EMOTE_BODY)


class TestParseFile:
    """Test reading combat log files."""

    def test_parse_file(self, settings, sample_log_file):
        parser = CombatLogParser(settings)
        progress = []

        results = list(
            parser.parse_file(sample_log_file, progress_callback=lambda *args: progress.append(args))
        )

        assert len(results) == 6
        assert results[0].event.source_name == "Thrall"
        assert results[0].line.endswith("\n")
        assert progress[-1][0] == 1.0
        assert parser.get_stats()["file"] == str(sample_log_file)

    def test_crlf_line_endings(self, settings, tmp_path):
        path = tmp_path / "WoWCombatLog.txt"
        path.write_bytes((make_line(EMOTE_BODY) + "\r\n").encode("utf-8") * 2)

        results = list(CombatLogParser(settings).parse_file(path))

        assert [r.status for r in results] == [LineStatus.DECODED, LineStatus.DECODED]
        assert results[0].event.text == "Hello there"

    def test_invalid_utf8_is_replaced(self, settings, tmp_path):
        path = tmp_path / "WoWCombatLog.txt"
        path.write_bytes(make_line('EMOTE,a,"b",c,d,caf').encode("utf-8") + b"\xff\n")

        results = list(CombatLogParser(settings).parse_file(path))
        assert results[0].event.text == "caf\ufffd"

    def test_missing_file(self, settings, tmp_path):
        with pytest.raises(FileNotFoundError):
            list(CombatLogParser(settings).parse_file(tmp_path / "missing.txt"))


class TestFindLogFiles:
    """Test combat log discovery."""

    def test_lists_matching_files(self, tmp_path):
        (tmp_path / "WoWCombatLog-2.txt").write_text("")
        (tmp_path / "WoWCombatLog-1.txt").write_text("")
        (tmp_path / "notes.txt").write_text("")
        (tmp_path / "WoWCombatLog-3.log").write_text("")

        files = find_log_files(tmp_path, "*CombatLog*.txt")

        assert [f.name for f in files] == ["WoWCombatLog-1.txt", "WoWCombatLog-2.txt"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(NotADirectoryError):
            find_log_files(tmp_path / "missing")
