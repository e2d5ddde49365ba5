import cv2
import numpy as np
import pytest

from moodtune.core.camera.webcam import WebcamCapture
from moodtune.core.emotion.hf_detector import HFEmotionDetector
from moodtune.core.session.controller import MoodSession
from moodtune.core.utils.metrics import reset_metrics


HAPPY_PREDICTIONS = [
    {"label": "happy", "score": 0.87},
    {"label": "neutral", "score": 0.08},
    {"label": "surprise", "score": 0.05},
]


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeClassifier:
    def __init__(self, predictions=None, error=None, on_call=None):
        self.predictions = HAPPY_PREDICTIONS if predictions is None else predictions
        self.error = error
        self.on_call = on_call
        self.calls = []

    def __call__(self, image):
        self.calls.append(image)
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error
        return self.predictions


def make_loader(classifier, progress=(0, 50, 100), error=None):
    def loader(model_id, on_progress):
        loader.calls.append(model_id)
        for value in progress:
            on_progress(value)
        if error is not None:
            raise error
        return classifier

    loader.calls = []
    return loader


class FakeVideoCapture:
    def __init__(self, index, opened=True, readable=True):
        self.index = index
        self.opened = opened
        self.readable = readable
        self.props = {cv2.CAP_PROP_FPS: 30}
        self.release_count = 0

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        return self.props.get(prop, 0)

    def read(self):
        if not self.readable:
            return False, None
        return True, np.full((480, 640, 3), 128, dtype=np.uint8)

    def release(self):
        self.release_count += 1


class FakeCaptureFactory:
    def __init__(self, opened=True, readable=True):
        self.opened = opened
        self.readable = readable
        self.instances = []

    def __call__(self, index):
        cap = FakeVideoCapture(index, opened=self.opened, readable=self.readable)
        self.instances.append(cap)
        return cap


@pytest.fixture(autouse=True)
def _fresh_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def jpeg_bytes():
    frame = np.full((48, 64, 3), 200, dtype=np.uint8)
    ok, buffer = cv2.imencode(".jpg", frame)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def detector(classifier):
    return HFEmotionDetector(model_id="test/model", loader=make_loader(classifier))


@pytest.fixture
def ready_detector(detector):
    detector.load_model()
    return detector


@pytest.fixture
def capture_factory():
    return FakeCaptureFactory()


@pytest.fixture
def camera(capture_factory):
    return WebcamCapture(camera_index=0, video_capture_factory=capture_factory)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(ready_detector, camera, clock):
    return MoodSession(detector=ready_detector, camera=camera, clock=clock)
