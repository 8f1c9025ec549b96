from types import SimpleNamespace

import pytest

from net_loginer.ml.captcha_solver import Classifier
from net_loginer.ml.preprocess import ResizeParam
from net_loginer.ml.verify_model import verify
from tests.conftest import FakeSession

CHARSET = ['', 'a', 'b', 'c']


def test_verify_passes_for_matching_model():
    session = FakeSession([0, 1, 2, 3, 0])
    classifier = Classifier(session, CHARSET, ResizeParam.fixed_height(64), channels=1)

    assert verify(classifier)
    assert session.feeds[0]['input1'].shape == (1, 1, 64, 160)


def test_verify_rejects_channel_mismatch():
    classifier = Classifier(FakeSession([1], channels=3), CHARSET, ResizeParam.fixed_height(64), channels=1)
    with pytest.raises(AssertionError, match='channels'):
        verify(classifier)


def test_verify_rejects_labels_outside_charset():
    classifier = Classifier(FakeSession([1, 9]), CHARSET, ResizeParam.fixed_height(64), channels=1)
    with pytest.raises(AssertionError, match='outside charset'):
        verify(classifier)


def test_verify_rejects_height_mismatch():
    session = FakeSession([1])
    session.get_inputs = lambda: [SimpleNamespace(name='x', type='tensor(float)', shape=[1, 1, 32, 'w'])]
    classifier = Classifier(session, CHARSET, ResizeParam.fixed_height(64), channels=1)
    with pytest.raises(AssertionError, match='height'):
        verify(classifier)
