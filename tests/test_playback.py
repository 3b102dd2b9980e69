import pytest

from fakes import FakeTransport
from walkman.playback import PlaybackController


def test_rewind_clamps_at_zero():
    transport = FakeTransport(current_time=6)
    controller = PlaybackController(transport)

    assert controller.adjust_playback(rewind=True, seconds=10) == 0
    assert transport.current_time == 0


def test_rewind():
    transport = FakeTransport(current_time=30)
    PlaybackController(transport).adjust_playback(rewind=True, seconds=10)
    assert transport.current_time == 20


def test_fast_forward_is_unclamped():
    transport = FakeTransport(current_time=30)
    PlaybackController(transport).adjust_playback(rewind=False, seconds=10)
    assert transport.current_time == 40


def test_seek_keeps_play_state():
    transport = FakeTransport(playing=True, current_time=30)
    controller = PlaybackController(transport)
    controller.adjust_playback(rewind=True, seconds=5)

    assert controller.playing
    assert transport.play_calls == 0 and transport.pause_calls == 0


def test_set_pause():
    transport = FakeTransport(playing=True)
    controller = PlaybackController(transport)

    controller.set_pause(True)
    assert not controller.playing
    assert not transport.playing

    controller.set_pause(False)
    assert controller.playing
    assert transport.playing


def test_speech_round_trip_restores_playing():
    transport = FakeTransport(playing=True)
    controller = PlaybackController(transport)

    controller.on_speech_started()
    assert not transport.playing
    assert controller.state.ducked_from_playing

    controller.on_speech_stopped()
    assert transport.playing
    assert not controller.state.ducked_from_playing


def test_speech_while_paused_is_noop():
    transport = FakeTransport(playing=False)
    controller = PlaybackController(transport)

    controller.on_speech_started()
    controller.on_speech_stopped()

    assert not transport.playing
    assert transport.play_calls == 0


def test_speech_stopped_without_start_is_noop():
    transport = FakeTransport(playing=False)
    PlaybackController(transport).on_speech_stopped()
    assert transport.play_calls == 0


def test_overlapping_speech_loses_original_state():
    transport = FakeTransport(playing=True)
    controller = PlaybackController(transport)

    controller.on_speech_started()
    controller.on_speech_started()
    controller.on_speech_stopped()

    assert not transport.playing


def test_explicit_pause_during_speech_is_not_undone():
    transport = FakeTransport(playing=True)
    controller = PlaybackController(transport)

    controller.on_speech_started()
    controller.set_pause(True)
    controller.on_speech_stopped()

    assert not transport.playing


def test_play_during_speech_clears_ducking():
    transport = FakeTransport(playing=True)
    controller = PlaybackController(transport)

    controller.on_speech_started()
    controller.set_pause(False)

    assert transport.playing
    assert not controller.state.ducked_from_playing


def test_reset_forgets_ducking():
    transport = FakeTransport(playing=True)
    controller = PlaybackController(transport)
    controller.on_speech_started()

    controller.reset()
    controller.on_speech_stopped()

    assert not controller.state.ducked_from_playing
    assert not transport.playing


def test_speech_after_transport_stopped_by_itself_does_not_resume():
    transport = FakeTransport(playing=False)
    controller = PlaybackController(transport)
    controller.set_pause(False)

    # End of file: the transport stops without going through the controller.
    transport.playing = False
    assert not controller.playing

    controller.on_speech_started()
    controller.on_speech_stopped()

    assert transport.play_calls == 1
    assert transport.pause_calls == 0
    assert not transport.playing


def test_playing_follows_transport():
    transport = FakeTransport(playing=False)
    controller = PlaybackController(transport)

    transport.playing = True
    assert controller.playing

    controller.on_speech_started()
    assert controller.state.ducked_from_playing
    assert transport.pause_calls == 1


def test_seek_rejects_bad_offsets():
    transport = FakeTransport(current_time=30)
    controller = PlaybackController(transport)

    for seconds in (float("inf"), float("nan"), -5):
        with pytest.raises(ValueError):
            controller.adjust_playback(rewind=False, seconds=seconds)

    assert transport.current_time == 30
