import json
import threading
import time
from types import SimpleNamespace

import cv2
import numpy as np
import pytest

from net_loginer.configs.web.param_schema import PageParams


def make_png(width: int, height: int, rgb=(255, 255, 255)) -> bytes:
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :] = rgb[::-1]  # BGR
    ok, buf = cv2.imencode('.png', img)
    assert ok
    return buf.tobytes()


class FakeSession:
    """Stands in for ``onnxruntime.InferenceSession``; returns canned labels."""

    def __init__(self, labels, channels=1, delay=0.0):
        self.labels = np.asarray(labels, dtype=np.int64)
        self.channels = channels
        self.delay = delay
        self.feeds = []
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def get_inputs(self):
        return [SimpleNamespace(name='input1', type='tensor(float)', shape=[1, self.channels, 64, 'width'])]

    def run(self, output_names, feed):
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            self.feeds.append(feed)
            return [self.labels]
        finally:
            with self._guard:
                self.active -= 1


class FakeResponse:
    def __init__(self, payload):
        self.content = json.dumps(payload).encode()


class StubClient:
    """Scripted portal: records every call, answers logins from ``login_handler``."""

    def __init__(self, login_handler, images=None):
        self.login_handler = login_handler
        self.images = list(images or [b'captcha'])
        self.page_calls = []
        self.image_calls = []
        self.forms = []

    def request_page_params(self, ip_address):
        self.page_calls.append(ip_address)
        n = len(self.page_calls)
        return PageParams(pushPageId=f'page-{n}', ssid=f'ssid-{n}')

    def request_verify_code_img(self, ip_address):
        self.image_calls.append(ip_address)
        idx = min(len(self.image_calls), len(self.images)) - 1
        return self.images[idx]

    def submit_login_form(self, params):
        self.forms.append(params)
        return FakeResponse(self.login_handler(params))

    def close(self):
        self.closed = True


@pytest.fixture
def white_png():
    return make_png(320, 160)
