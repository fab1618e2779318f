"""Tests for input recordings."""

import orjson
import pytest

from tasrun.exceptions import ProgramFileError
from tasrun.files.recording import (
    Recorder,
    RecordingFile,
    backup_path,
    decode_steps,
    encode_log,
    expand_steps,
    load_recording,
    recording_path,
    recording_program,
    restore_backup,
    save_recording,
)
from tasrun.kernel.program import parse_steps
from tasrun.kernel.sequencer import Sequencer
from tasrun.types import NO_INPUT, parse_inputs

LOG = [parse_inputs(c) for c in ["r", "r", "r", "", "", "rj", "j", "j"]]


def test_encode_log_run_lengths():
    assert encode_log(LOG) == ["r", 3, "", 2, "rj", 1, "j", 2]


def test_decode_and_expand_reproduce_log():
    assert expand_steps(decode_steps(encode_log(LOG))) == LOG


def test_decode_rejects_non_countdown():
    with pytest.raises(ProgramFileError):
        decode_steps(["r", ["tg"]])


def test_recording_plays_back_tick_for_tick(evaluator, host):
    sequencer = Sequencer(evaluator, host.write_keys)
    sequencer.load(parse_steps(encode_log(LOG)))
    for _ in range(len(LOG) + 1):
        sequencer.step()
    assert host.written == LOG + [NO_INPUT]


def test_recorder_tracks_sections():
    recorder = Recorder()
    for keys in LOG[:3]:
        recorder.record(0, keys)
    recorder.record(1, parse_inputs("j"))
    recorder.record(1, NO_INPUT)
    recorder.record(1, NO_INPUT)

    assert recorder.runs(0) == [(parse_inputs("r"), 3)]
    assert recorder.last_section == 1
    assert recorder.to_file().sections == {0: ["r", 3], 1: ["j", 1, "", 2]}


def test_finalize_trims_trailing_idle_run():
    recorder = Recorder()
    recorder.record(0, NO_INPUT)
    recorder.record(0, NO_INPUT)
    recorder.record(0, parse_inputs("r"))
    for _ in range(40):
        recorder.record(0, NO_INPUT)

    recorder.finalize()

    assert recorder.to_file().sections[0] == ["", 2, "r", 1, "", 1]


def test_record_reports_held_input():
    recorder = Recorder()
    assert recorder.record(0, NO_INPUT) is False
    assert recorder.record(0, parse_inputs("l")) is True
    assert not recorder.empty


def test_save_and_load(tmp_path):
    path = recording_path("castle.lvlx", tmp_path)
    save_recording(path, RecordingFile(sections={0: ["r", 3, "", 1]}))

    loaded = load_recording(path)

    assert path.name == "castle.rec"
    assert loaded.version == 0
    assert loaded.sections == {0: ["r", 3, "", 1]}
    assert orjson.loads(path.read_bytes())["sections"] == {"0": ["r", 3, "", 1]}


def test_missing_recording_is_empty(tmp_path):
    assert load_recording(tmp_path / "none.rec").sections == {}


def test_malformed_recording(tmp_path):
    path = tmp_path / "bad.rec"
    path.write_text("{", encoding="utf-8")
    with pytest.raises(ProgramFileError):
        load_recording(path)


def test_playback_writes_backup_and_restore(tmp_path):
    path = recording_path("castle", tmp_path)
    backup = backup_path(tmp_path)
    save_recording(path, RecordingFile(sections={0: ["r", 5]}))

    load_recording(path, backup=backup)
    assert backup.read_bytes() == path.read_bytes()

    save_recording(path, RecordingFile(sections={0: ["l", 1]}))
    assert restore_backup(path, backup) is True
    assert load_recording(path).sections == {0: ["r", 5]}


def test_restore_without_backup(tmp_path):
    assert restore_backup(tmp_path / "castle.rec", tmp_path / "latest.rec.bak") is False


def test_recording_program():
    program = recording_program(RecordingFile(sections={0: ["r", 2], 3: ["", 1]}))
    assert set(program) == {0, 3}
    assert expand_steps(program[0]) == [parse_inputs("r")] * 2
