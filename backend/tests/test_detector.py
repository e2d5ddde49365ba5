import threading

import numpy as np
import pytest
from PIL import Image

from moodtune.core.emotion.hf_detector import (
    NO_EMOTION_MESSAGE,
    HFEmotionDetector,
    ModelStatus,
    _select_model_files,
)
from moodtune.core.emotion.schema import Emotion
from moodtune.core.errors import DetectionFailed, ModelLoadFailed, ModelNotReady
from moodtune.core.utils.metrics import get_metrics

from conftest import FakeClassifier, make_loader


def test_new_detector_is_unloaded(detector):
    state = detector.get_state()
    assert state['status'] == 'unloaded'
    assert state['model_ready'] is False
    assert state['loading_progress'] == 0
    assert state['result'] is None


def test_progress_never_decreases_and_ends_at_100():
    seen = []
    detector = None

    def loader(model_id, on_progress):
        for value in (10, 5, 40, 150, -3):
            on_progress(value)
            seen.append(detector.state.loading_progress)
        return FakeClassifier()

    detector = HFEmotionDetector(model_id="test/model", loader=loader)
    detector.load_model()

    assert seen == [10, 10, 40, 100, 100]
    assert detector.state.loading_progress == 100
    assert detector.is_ready


def test_load_records_model_load_metric(ready_detector):
    assert get_metrics().get_statistics('model_load')['model_load']['count'] == 1


def test_load_failure_sets_failed_state():
    detector = HFEmotionDetector(
        model_id="test/model",
        loader=make_loader(FakeClassifier(), error=OSError("network down")),
    )

    with pytest.raises(ModelLoadFailed):
        detector.load_model()

    state = detector.get_state()
    assert state['status'] == 'failed'
    assert state['model_ready'] is False
    assert state['error'] == ModelLoadFailed.default_message


def test_reload_after_failure_can_succeed():
    attempts = []

    def loader(model_id, on_progress):
        attempts.append(model_id)
        if len(attempts) == 1:
            raise OSError("network down")
        on_progress(100)
        return FakeClassifier()

    detector = HFEmotionDetector(model_id="test/model", loader=loader)
    with pytest.raises(ModelLoadFailed):
        detector.load_model()

    detector.load_model()

    assert len(attempts) == 2
    assert detector.is_ready
    assert detector.state.last_error is None


def test_load_is_a_noop_once_ready(classifier):
    loader = make_loader(classifier)
    detector = HFEmotionDetector(model_id="test/model", loader=loader)
    detector.load_model()
    detector.load_model()
    assert loader.calls == ["test/model"]


def test_background_load_reaches_ready(detector):
    thread = detector.load_model_in_background()
    assert isinstance(thread, threading.Thread)
    thread.join(timeout=5)
    assert detector.is_ready
    assert detector.load_model_in_background() is None


def test_background_load_failure_is_recorded_in_state():
    detector = HFEmotionDetector(
        model_id="test/model",
        loader=make_loader(FakeClassifier(), error=RuntimeError("boom")),
    )
    thread = detector.load_model_in_background()
    thread.join(timeout=5)
    assert detector.state.status == ModelStatus.FAILED


def test_classify_before_load_raises_and_keeps_result(detector, jpeg_bytes):
    with pytest.raises(ModelNotReady):
        detector.classify(jpeg_bytes)

    assert detector.state.last_result is None
    assert detector.state.last_error == ModelNotReady.default_message


def test_classify_maps_label_and_confidence(jpeg_bytes):
    classifier = FakeClassifier(predictions=[
        {'label': 'joy', 'score': 0.87},
        {'label': 'sadness', 'score': 0.13},
    ])
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    detector.load_model()

    result = detector.classify(jpeg_bytes)

    assert result.emotion is Emotion.HAPPY
    assert result.confidence == pytest.approx(87.0)
    assert [e for e, _ in result.all_emotions] == [Emotion.HAPPY, Emotion.SAD]
    assert detector.state.last_result == result
    assert isinstance(classifier.calls[0], Image.Image)
    assert classifier.calls[0].mode == 'RGB'


def test_classify_accepts_opencv_frames_and_pil_images(ready_detector, classifier):
    frame = np.zeros((32, 32, 3), dtype=np.uint8)
    ready_detector.classify(frame)
    ready_detector.classify(Image.new('L', (16, 16)))
    assert all(image.mode == 'RGB' for image in classifier.calls)


def test_nested_predictions_are_flattened(jpeg_bytes):
    classifier = FakeClassifier(predictions=[[{'label': 'fear', 'score': 0.6}]])
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    detector.load_model()

    assert detector.classify(jpeg_bytes).emotion is Emotion.FEARFUL


def test_unknown_label_becomes_neutral(jpeg_bytes):
    classifier = FakeClassifier(predictions=[{'label': 'contempt', 'score': 0.9}])
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    detector.load_model()

    assert detector.classify(jpeg_bytes).emotion is Emotion.NEUTRAL


@pytest.mark.parametrize("predictions", [
    [],
    [[]],
    [{'label': 'happy'}],
    [{'score': 0.5}],
    [{'label': 'happy', 'score': 'high'}],
    [{'label': 'happy', 'score': float('nan')}],
    [{'label': None, 'score': 0.5}],
    {'label': 'happy', 'score': 0.5},
])
def test_empty_or_malformed_output_fails_detection(predictions, jpeg_bytes):
    classifier = FakeClassifier(predictions=predictions)
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    detector.load_model()

    with pytest.raises(DetectionFailed) as excinfo:
        detector.classify(jpeg_bytes)

    assert excinfo.value.user_message == NO_EMOTION_MESSAGE
    assert detector.state.last_error == NO_EMOTION_MESSAGE
    assert detector.state.last_result is None


def test_classifier_exception_becomes_detection_failed(jpeg_bytes):
    classifier = FakeClassifier(error=ValueError("bad tensor"))
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    detector.load_model()

    with pytest.raises(DetectionFailed) as excinfo:
        detector.classify(jpeg_bytes)

    assert "Failed to detect emotion" in excinfo.value.user_message
    assert detector.is_ready


def test_invalid_image_bytes_fail_detection(ready_detector, classifier):
    with pytest.raises(DetectionFailed) as excinfo:
        ready_detector.classify(b"definitely not an image")

    assert "Invalid image format" in excinfo.value.user_message
    assert classifier.calls == []


@pytest.mark.parametrize("score,expected", [(1.7, 100.0), (-0.2, 0.0), (0.123456, 12.35)])
def test_confidence_is_kept_within_percent_range(score, expected, jpeg_bytes):
    classifier = FakeClassifier(predictions=[{'label': 'angry', 'score': score}])
    detector = HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))
    detector.load_model()

    assert detector.classify(jpeg_bytes).confidence == pytest.approx(expected)


def test_clear_result_resets_result_and_error(ready_detector, jpeg_bytes):
    ready_detector.classify(jpeg_bytes)
    ready_detector.clear_result()
    state = ready_detector.get_state()
    assert state['result'] is None
    assert state['error'] is None
    assert state['model_ready'] is True


def test_select_model_files_prefers_safetensors():
    files = [
        'README.md',
        'config.json',
        'model.safetensors',
        'pytorch_model.bin',
        'preprocessor_config.json',
        'runs/events.out',
        'checkpoint-100/config.json',
    ]
    assert _select_model_files(files) == [
        'config.json',
        'model.safetensors',
        'preprocessor_config.json',
    ]


def test_select_model_files_keeps_bin_weights_when_alone():
    assert _select_model_files(['pytorch_model.bin', 'config.json']) == [
        'config.json',
        'pytorch_model.bin',
    ]
