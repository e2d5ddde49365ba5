import pytest

from moodtune.core.camera.webcam import WebcamCapture
from moodtune.core.emotion.hf_detector import HFEmotionDetector
from moodtune.core.emotion.schema import Emotion
from moodtune.core.errors import (
    CameraUnavailable,
    CaptureInProgress,
    DetectionFailed,
    ModelNotReady,
    NotStreaming,
)
from moodtune.core.session.controller import MANUAL_CONFIDENCE, MoodSession, View
from moodtune.core.utils.metrics import get_metrics

from conftest import FakeCaptureFactory, FakeClassifier, FakeClock, make_loader


def _session_with(classifier, clock=None, capture_factory=None):
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    detector.load_model()
    camera = WebcamCapture(video_capture_factory=capture_factory or FakeCaptureFactory())
    return MoodSession(detector=detector, camera=camera, clock=clock or FakeClock())


def test_initial_snapshot(session):
    state = session.snapshot()

    assert state['view'] == 'detect'
    assert state['detected_emotion'] is None
    assert state['capture']['view'] == 'placeholder'
    assert state['model']['model_ready'] is True
    assert state['playlist'] is None
    assert state['player'] is None
    assert state['error'] is None


def test_manual_selection_switches_view_immediately(session):
    playlist = session.select_emotion('sad')
    state = session.snapshot()

    assert playlist.label == 'Melancholy'
    assert state['view'] == 'playlist'
    assert state['detected_emotion'] == 'sad'
    assert state['confidence'] == MANUAL_CONFIDENCE
    assert state['manual_selection'] is True
    assert [t['title'] for t in state['playlist']['tracks']] == [
        'Someone Like You', 'Fix You', 'Hurt', 'Mad World',
    ]
    assert state['player']['current_track_index'] == 0
    assert state['player']['is_playing'] is False


def test_manual_selection_rejects_unknown_emotion(session):
    with pytest.raises(ValueError):
        session.select_emotion('joy')
    assert session.view is View.DETECT


def test_detection_transitions_after_delay(session, clock, capture_factory):
    session.start_camera()
    result = session.capture_and_analyze()

    assert result.emotion is Emotion.HAPPY
    state = session.snapshot()
    assert state['view'] == 'detect'
    assert state['detected_emotion'] == 'happy'
    assert state['confidence'] == pytest.approx(87.0)
    assert state['transition_pending'] is True
    assert state['capture']['view'] == 'captured'
    assert state['manual_selection'] is False
    # La cámara se libera al capturar
    assert capture_factory.instances[0].release_count == 1

    detected_at = clock.now
    clock.now = detected_at + 1.49
    assert session.snapshot()['view'] == 'detect'

    clock.now = detected_at + 1.5
    state = session.snapshot()
    assert state['view'] == 'playlist'
    assert state['transition_pending'] is False
    assert state['playlist']['emotion'] == 'happy'


def test_detection_is_measured(session):
    session.start_camera()
    session.capture_and_analyze()
    assert get_metrics().last_duration('emotion_detection') is not None


def test_analyze_uploaded_image(session, jpeg_bytes):
    result = session.analyze_image(jpeg_bytes)

    assert result.emotion is Emotion.HAPPY
    assert session.captured_image == jpeg_bytes
    assert not session.camera.is_streaming


def test_back_clears_everything(session, clock):
    session.select_emotion('angry')
    session.toggle_play()
    session.back()
    state = session.snapshot()

    assert state['view'] == 'detect'
    assert state['detected_emotion'] is None
    assert state['confidence'] == 0
    assert state['result'] is None
    assert state['playlist'] is None
    assert state['capture']['has_image'] is False
    assert session.player.state.is_playing is False


def test_back_cancels_pending_transition(session, clock):
    session.start_camera()
    session.capture_and_analyze()
    session.back()

    clock.advance(5)
    assert session.snapshot()['view'] == 'detect'


def test_late_result_is_discarded_after_back(clock):
    holder = {}
    classifier = FakeClassifier(on_call=lambda: holder['session'].back())
    session = _session_with(classifier, clock=clock)
    holder['session'] = session

    session.start_camera()
    assert session.capture_and_analyze() is None

    clock.advance(5)
    state = session.snapshot()
    assert state['view'] == 'detect'
    assert state['detected_emotion'] is None
    assert state['transition_pending'] is False
    assert state['capture']['analyzing'] is False


def test_late_result_does_not_override_manual_selection(clock, jpeg_bytes):
    holder = {}
    classifier = FakeClassifier(on_call=lambda: holder['session'].select_emotion('sad'))
    session = _session_with(classifier, clock=clock)
    holder['session'] = session

    assert session.analyze_image(jpeg_bytes) is None

    state = session.snapshot()
    assert state['detected_emotion'] == 'sad'
    assert state['confidence'] == MANUAL_CONFIDENCE
    assert state['view'] == 'playlist'


def test_capture_rejected_while_analysis_in_progress(clock, jpeg_bytes):
    holder = {}

    def reenter():
        with pytest.raises(CaptureInProgress):
            holder['session'].analyze_image(jpeg_bytes)
        holder['checked'] = True

    session = _session_with(FakeClassifier(on_call=reenter), clock=clock)
    holder['session'] = session

    assert session.analyze_image(jpeg_bytes).emotion is Emotion.HAPPY
    assert holder['checked']


def test_camera_denied_leaves_state_unchanged():
    session = _session_with(FakeClassifier(), capture_factory=FakeCaptureFactory(opened=False))

    with pytest.raises(CameraUnavailable):
        session.start_camera()

    state = session.snapshot()
    assert state['view'] == 'detect'
    assert state['capture']['view'] == 'placeholder'
    assert state['capture']['is_streaming'] is False
    assert state['error'].startswith('Could not open camera 0')


def test_capture_without_camera_raises(session):
    with pytest.raises(NotStreaming):
        session.capture_and_analyze()
    assert session.snapshot()['error'] == NotStreaming.default_message


def test_capture_before_model_is_ready(camera, clock, classifier):
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    session = MoodSession(detector=detector, camera=camera, clock=clock)
    session.start_camera()

    with pytest.raises(ModelNotReady):
        session.capture_and_analyze()

    assert detector.state.last_result is None
    assert session.camera.is_streaming
    assert session.snapshot()['error'] == ModelNotReady.default_message


def test_capture_view_shows_loading_while_model_loads(camera, clock, classifier):
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    session = MoodSession(detector=detector, camera=camera, clock=clock)

    assert detector.begin_loading()
    assert session.snapshot()['capture']['view'] == 'loading'


def test_failed_detection_keeps_detect_view(clock, jpeg_bytes):
    session = _session_with(FakeClassifier(predictions=[]), clock=clock)

    with pytest.raises(DetectionFailed):
        session.analyze_image(jpeg_bytes)

    clock.advance(5)
    state = session.snapshot()
    assert state['view'] == 'detect'
    assert state['capture']['analyzing'] is False
    assert state['error'].startswith('No emotion detected')


def test_retake_clears_result_and_restarts_camera(session, clock, capture_factory):
    session.start_camera()
    session.capture_and_analyze()
    session.retake()

    state = session.snapshot()
    assert state['capture']['view'] == 'streaming'
    assert state['result'] is None
    assert state['detected_emotion'] is None
    assert state['model']['result'] is None
    assert len(capture_factory.instances) == 2

    clock.advance(5)
    assert session.snapshot()['view'] == 'detect'


def test_entering_playlist_view_stops_camera(session):
    session.start_camera()
    session.select_emotion('neutral')
    assert not session.camera.is_streaming


def test_player_progress_follows_the_clock(session, clock):
    session.select_emotion('happy')
    session.toggle_play()

    clock.advance(5.0)
    assert session.snapshot()['player']['progress'] == pytest.approx(5.0)

    clock.advance(95.0)
    player = session.snapshot()['player']
    assert player['progress'] == pytest.approx(100.0)
    assert player['current_track_index'] == 0

    clock.advance(0.5)
    player = session.snapshot()['player']
    assert player['current_track_index'] == 1
    assert player['progress'] == 0


def test_paused_player_does_not_advance(session, clock):
    session.select_emotion('happy')
    session.toggle_play()
    clock.advance(2.0)
    session.toggle_play()
    clock.advance(30.0)
    assert session.snapshot()['player']['progress'] == pytest.approx(2.0)


def test_player_controls(session):
    session.select_emotion('fearful')
    session.next_track()
    session.next_track()
    session.previous_track()
    session.set_volume(250)
    session.toggle_like()

    player = session.snapshot()['player']
    assert player['current_track_index'] == 1
    assert player['volume'] == 100
    assert player['is_liked'] is True

    session.select_track(3)
    assert session.snapshot()['player']['current_track']['id'] == 'f4'
    with pytest.raises(IndexError):
        session.select_track(7)


def test_close_releases_camera(session):
    session.start_camera()
    session.close()
    assert not session.camera.is_streaming


def test_manual_selection_replaces_pending_detection(session, clock):
    session.start_camera()
    session.capture_and_analyze()
    session.select_emotion('sad')

    state = session.snapshot()
    assert state['view'] == 'playlist'
    assert state['detected_emotion'] == 'sad'
    assert state['manual_selection'] is True
    assert state['result'] is None
    assert state['model']['result'] is None
    assert state['confidence'] == MANUAL_CONFIDENCE

    clock.advance(5)
    assert session.snapshot()['playlist']['emotion'] == 'sad'


def test_long_playback_catches_up_in_one_read(session, clock):
    session.select_emotion('happy')
    session.toggle_play()

    # 201 ticks de 0.5 s por pista: dos pistas completas y 10 ticks más
    clock.advance(0.5 * (201 * 2 + 10))
    player = session.snapshot()['player']
    assert player['current_track_index'] == 2
    assert player['progress'] == pytest.approx(5.0)
