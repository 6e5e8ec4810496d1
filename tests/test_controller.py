"""Tests for the record / play action cycle."""

import threading
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from memo_recorder.audio import RecordingSession
from memo_recorder.core.controller import (
    ActionCycleController,
    Mode,
    PRESENTATIONS,
    Presentation,
)
from memo_recorder.utils.exceptions import PrepareError


CYCLE = [Mode.READY_TO_RECORD, Mode.RECORDING, Mode.READY_TO_PLAY, Mode.PLAYING]
LABELS = {
    Mode.READY_TO_RECORD: "record",
    Mode.RECORDING: "stop recording",
    Mode.READY_TO_PLAY: "play",
    Mode.PLAYING: "stop playing",
}


class FakeSession:
    """Stands in for a device session and remembers what happened to it."""

    def __init__(self, kind, fail=False, on_complete=None):
        self.kind = kind
        self.fail = fail
        self.on_complete = on_complete
        self.path = None
        self.is_open = False
        self.close_calls = 0

    def open(self, path):
        self.path = Path(path)
        if self.fail:
            raise PrepareError(f"{self.kind} device busy")
        self.is_open = True

    def close(self):
        self.is_open = False
        self.close_calls += 1


class Devices:
    """Session factories that record every session they hand out."""

    def __init__(self):
        self.sessions = []
        self.fail_recording = False
        self.fail_playback = False

    def recorder(self):
        session = FakeSession("record", fail=self.fail_recording)
        self.sessions.append(session)
        return session

    def player(self, on_complete):
        session = FakeSession("play", fail=self.fail_playback, on_complete=on_complete)
        self.sessions.append(session)
        return session

    @property
    def open_sessions(self):
        return [s for s in self.sessions if s.is_open]

    @property
    def last(self):
        return self.sessions[-1]


@pytest.fixture
def devices():
    return Devices()


@pytest.fixture
def view():
    return Mock()


@pytest.fixture
def controller(devices, view):
    return ActionCycleController(
        "/tmp/a.3gp",
        view=view,
        recorder_factory=devices.recorder,
        player_factory=devices.player,
    )


def advance_to(controller, mode):
    while controller.mode is not mode:
        controller.activate()


class TestInitialize:
    def test_initial_state(self, controller, view):
        assert controller.mode is Mode.READY_TO_RECORD
        assert controller.target_path == Path("/tmp/a.3gp")
        assert controller.session is None
        assert controller.last_error is None
        assert controller.label == "record"
        view.render.assert_called_once_with(Presentation("record", "ic_audio_record"))

    def test_reinitialize_releases_session_and_resets_mode(self, controller, devices):
        advance_to(controller, Mode.RECORDING)
        recording = devices.last

        controller.initialize("/tmp/b.3gp")

        assert not recording.is_open
        assert controller.mode is Mode.READY_TO_RECORD
        assert controller.target_path == Path("/tmp/b.3gp")
        assert controller.session is None

    def test_default_factories_build_device_sessions(self):
        controller = ActionCycleController("/tmp/a.3gp")
        assert isinstance(controller._recorder_factory(), RecordingSession)


class TestActivate:
    def test_scenario_record_stop_play_complete(self, controller, devices, view):
        controller.activate()
        assert controller.mode is Mode.RECORDING
        assert controller.label == "stop recording"
        recording = devices.last
        assert recording.kind == "record"
        assert recording.is_open
        assert recording.path == Path("/tmp/a.3gp")
        assert controller.is_recording

        controller.activate()
        assert controller.mode is Mode.READY_TO_PLAY
        assert controller.label == "play"
        assert not recording.is_open
        assert controller.session is None

        controller.activate()
        assert controller.mode is Mode.PLAYING
        assert controller.label == "stop playing"
        playback = devices.last
        assert playback.kind == "play"
        assert playback.is_open
        assert playback.path == Path("/tmp/a.3gp")
        assert controller.is_playing

        controller.on_playback_completed()
        assert controller.mode is Mode.READY_TO_RECORD
        assert controller.label == "record"
        assert not playback.is_open
        assert controller.session is None

        rendered = [c.args[0].label for c in view.render.call_args_list]
        assert rendered == ["record", "stop recording", "play", "stop playing", "record"]

    def test_modes_follow_fixed_cycle(self, controller):
        seen = [controller.mode]
        for _ in range(12):
            controller.activate()
            seen.append(controller.mode)

        assert seen == (CYCLE * 4)[:13]

    def test_user_stop_playing_returns_to_record(self, controller, devices):
        advance_to(controller, Mode.PLAYING)
        playback = devices.last

        controller.activate()

        assert controller.mode is Mode.READY_TO_RECORD
        assert not playback.is_open
        assert playback.close_calls == 1

    def test_at_most_one_session_open(self, controller, devices):
        for _ in range(10):
            controller.activate()
            assert len(devices.open_sessions) <= 1
            if controller.mode in (Mode.RECORDING, Mode.PLAYING):
                assert devices.open_sessions == [controller.session]
            else:
                assert devices.open_sessions == []

    @pytest.mark.parametrize("mode", CYCLE)
    def test_label_and_icon_depend_only_on_mode(self, controller, mode):
        # Go round once first so history differs from a fresh start
        advance_to(controller, Mode.PLAYING)
        controller.activate()
        advance_to(controller, mode)

        assert controller.label == LABELS[mode]
        assert controller.presentation == PRESENTATIONS[mode]

    def test_player_gets_completion_callback(self, controller, devices):
        advance_to(controller, Mode.PLAYING)
        assert devices.last.on_complete == controller.on_playback_completed


class TestPrepareFailure:
    def test_failed_recording_keeps_mode_and_reports(self, controller, devices, view):
        devices.fail_recording = True
        view.reset_mock()

        controller.activate()

        assert controller.mode is Mode.READY_TO_RECORD
        assert controller.session is None
        assert isinstance(controller.last_error, PrepareError)
        assert devices.last.close_calls == 1
        view.show_error.assert_called_once_with("record device busy")
        view.render.assert_not_called()

    def test_failed_playback_keeps_mode(self, controller, devices):
        advance_to(controller, Mode.READY_TO_PLAY)
        devices.fail_playback = True

        controller.activate()

        assert controller.mode is Mode.READY_TO_PLAY
        assert controller.label == "play"
        assert controller.session is None
        assert devices.open_sessions == []

    def test_retry_after_failure_clears_error(self, controller, devices):
        devices.fail_recording = True
        controller.activate()
        devices.fail_recording = False

        controller.activate()

        assert controller.mode is Mode.RECORDING
        assert controller.last_error is None

    def test_unwritable_target_leaves_no_session(self, tmp_path):
        controller = ActionCycleController(tmp_path / "missing" / "a.3gp")

        with patch('memo_recorder.audio.recorder.pyaudio'):
            controller.activate()

        assert controller.mode is Mode.READY_TO_RECORD
        assert controller.session is None
        assert isinstance(controller.last_error, PrepareError)

    def test_capture_start_failure_keeps_mode(self, tmp_path):
        controller = ActionCycleController(tmp_path / "a.3gp")

        with patch('memo_recorder.audio.recorder.pyaudio') as mock_pyaudio:
            stream = mock_pyaudio.PyAudio.return_value.open.return_value
            stream.start_stream.side_effect = OSError(-9985, "Device unavailable")
            controller.activate()

        assert controller.mode is Mode.READY_TO_RECORD
        assert controller.session is None
        assert isinstance(controller.last_error, PrepareError)
        mock_pyaudio.PyAudio.return_value.terminate.assert_called_once()
        assert list(tmp_path.iterdir()) == []


class TestPlaybackCompleted:
    @pytest.mark.parametrize("mode", [Mode.READY_TO_RECORD, Mode.RECORDING, Mode.READY_TO_PLAY])
    def test_ignored_outside_playing(self, controller, devices, view, mode):
        advance_to(controller, mode)
        session = controller.session
        renders = view.render.call_count

        controller.on_playback_completed()

        assert controller.mode is mode
        assert controller.session is session
        assert view.render.call_count == renders

    def test_stale_session_ignored(self, controller, devices):
        advance_to(controller, Mode.PLAYING)
        first = devices.last
        controller.activate()
        advance_to(controller, Mode.PLAYING)
        second = devices.last

        controller.on_playback_completed(first)

        assert controller.mode is Mode.PLAYING
        assert second.is_open

    def test_current_session_completes(self, controller, devices):
        advance_to(controller, Mode.PLAYING)
        playback = devices.last

        playback.on_complete(playback)

        assert controller.mode is Mode.READY_TO_RECORD
        assert not playback.is_open

    def test_completion_after_suspend_is_ignored(self, controller, devices):
        advance_to(controller, Mode.PLAYING)
        playback = devices.last
        controller.suspend()

        controller.on_playback_completed(playback)

        assert controller.mode is Mode.PLAYING
        assert playback.close_calls == 1

    def test_completion_racing_user_stop(self, controller, devices):
        advance_to(controller, Mode.PLAYING)
        playback = devices.last
        start = threading.Event()

        def notify():
            start.wait()
            controller.on_playback_completed(playback)

        notifier = threading.Thread(target=notify)
        notifier.start()
        start.set()
        controller.activate()
        notifier.join(timeout=2)

        assert not playback.is_open
        assert len(devices.open_sessions) <= 1
        # Either the user stop won (completion ignored) or completion won
        # and the press started a new recording
        assert controller.mode in (Mode.READY_TO_RECORD, Mode.RECORDING)
        if controller.mode is Mode.RECORDING:
            assert devices.open_sessions == [devices.last]


class TestSuspend:
    @pytest.mark.parametrize("mode", CYCLE)
    def test_releases_session_and_keeps_mode(self, controller, devices, view, mode):
        advance_to(controller, mode)
        renders = view.render.call_count

        controller.suspend()

        assert controller.mode is mode
        assert controller.session is None
        assert devices.open_sessions == []
        assert view.render.call_count == renders

    def test_scenario_suspend_while_playing(self, controller, devices):
        advance_to(controller, Mode.PLAYING)
        playback = devices.last

        controller.suspend()

        assert not playback.is_open
        assert controller.mode is Mode.PLAYING
        assert controller.label == "stop playing"

    def test_idempotent(self, controller, devices):
        advance_to(controller, Mode.RECORDING)
        recording = devices.last

        controller.suspend()
        controller.suspend()

        assert recording.close_calls == 1

    def test_next_activate_after_suspend_advances_from_stale_mode(self, controller, devices):
        advance_to(controller, Mode.RECORDING)
        recording = devices.last
        controller.suspend()

        controller.activate()

        assert controller.mode is Mode.READY_TO_PLAY
        assert recording.close_calls == 1

    def test_suspend_inside_activate_releases_new_session(self, devices):
        opened = []

        def recorder():
            session = FakeSession("record")

            def open_then_background(path):
                FakeSession.open(session, path)
                # Signal handler runs on the same thread before activate returns
                controller.suspend()
                assert controller.busy

            session.open = open_then_background
            opened.append(session)
            return session

        controller = ActionCycleController(
            "/tmp/a.3gp", recorder_factory=recorder, player_factory=devices.player,
        )

        controller.activate()

        assert controller.mode is Mode.RECORDING
        assert controller.session is None
        assert not controller.busy
        assert opened[0].close_calls == 1
        assert not opened[0].is_open

    def test_suspend_from_another_thread_waits_for_activate(self, devices):
        entered = threading.Event()
        proceed = threading.Event()

        def recorder():
            session = FakeSession("record")

            def slow_open(path):
                entered.set()
                proceed.wait(timeout=2)
                FakeSession.open(session, path)

            session.open = slow_open
            devices.sessions.append(session)
            return session

        controller = ActionCycleController(
            "/tmp/a.3gp", recorder_factory=recorder, player_factory=devices.player,
        )
        pressing = threading.Thread(target=controller.activate)
        pressing.start()
        assert entered.wait(timeout=2)

        suspending = threading.Thread(target=controller.suspend)
        suspending.start()
        proceed.set()
        pressing.join(timeout=2)
        suspending.join(timeout=2)

        assert controller.mode is Mode.RECORDING
        assert controller.session is None
        assert devices.open_sessions == []

    def test_context_manager_suspends_on_exit(self, devices):
        with ActionCycleController(
            "/tmp/a.3gp",
            recorder_factory=devices.recorder,
            player_factory=devices.player,
        ) as controller:
            controller.activate()
            assert devices.last.is_open

        assert devices.open_sessions == []
        assert controller.mode is Mode.RECORDING
