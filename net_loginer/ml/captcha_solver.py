import json
import logging
import threading
from typing import List, Sequence

import numpy as np
import onnxruntime as ort

from net_loginer.configs.common import CHARSET_PATH, MODEL_PATH, NUM_CHANNELS, RESIZE_PARAM
from net_loginer.errors import ModelLoadError, ModelOutputError
from net_loginer.ml.preprocess import ResizeParam, to_tensor

logger = logging.getLogger(__name__)

BLANK = 0


def decode_labels(labels: Sequence[int], charset: Sequence[str]) -> str:
    """Greedy collapse of a per-step label sequence.

    Blank labels (0) are dropped and a label equal to the last *emitted* one is
    dropped too, so ``[0, 1, 1, 2, 0, 2]`` decodes to two glyphs, not three.
    """
    last_item = BLANK
    result = []
    for value in labels:
        value = int(value)
        if value == BLANK or value == last_item:
            continue
        if not 0 < value < len(charset):
            raise ModelOutputError(f'Label {value} outside charset of size {len(charset)}')
        last_item = value
        result.append(charset[value])
    return ''.join(result)


class Classifier:
    """Owns one inference session; ``classification`` maps image bytes to text.

    The session is not reentrant: every ``run`` happens under ``self._lock``
    and concurrent callers block until the previous inference returns.
    """

    def __init__(
        self,
        session: ort.InferenceSession,
        charset: Sequence[str],
        resize_param: ResizeParam = ResizeParam.from_pair(RESIZE_PARAM),
        channels: int = NUM_CHANNELS,
    ) -> None:
        if not charset:
            raise ModelLoadError('Charset is empty')
        self._session = session
        self._lock = threading.Lock()
        self._input_name = session.get_inputs()[0].name
        self.charset = tuple(charset)
        self.resize_param = resize_param
        self.channels = channels

    @property
    def session(self) -> ort.InferenceSession:
        return self._session

    @classmethod
    def from_model(
        cls,
        model: bytes,
        charset: Sequence[str],
        resize_param: ResizeParam = ResizeParam.from_pair(RESIZE_PARAM),
        channels: int = NUM_CHANNELS,
    ) -> 'Classifier':
        try:
            session = ort.InferenceSession(model, providers=['CPUExecutionProvider'])
        except Exception as e:
            raise ModelLoadError(f'Cannot load recognition model: {e}') from e
        return cls(session, charset, resize_param, channels)

    def infer(self, tensor: np.ndarray) -> List[int]:
        with self._lock:
            outputs = self._session.run(None, {self._input_name: tensor})
        return self._to_labels(outputs[0])

    @staticmethod
    def _to_labels(output) -> List[int]:
        arr = np.asarray(output)
        if np.issubdtype(arr.dtype, np.floating):
            arr = arr.argmax(axis=-1)
        return [int(v) for v in arr.reshape(-1)]

    def classification(self, img_bytes: bytes) -> str:
        tensor = to_tensor(img_bytes, self.resize_param, self.channels)
        return decode_labels(self.infer(tensor), self.charset)

    __call__ = classification


def load_charset(path: str = CHARSET_PATH) -> List[str]:
    try:
        with open(path, 'rb') as f:
            charset = json.load(f)
    except (OSError, ValueError) as e:
        raise ModelLoadError(f'Cannot read charset {path}: {e}') from e
    if not isinstance(charset, list) or not all(isinstance(c, str) for c in charset):
        raise ModelLoadError(f'Charset {path} must be a JSON list of strings')
    return charset


def load_classifier(
    model_path: str = MODEL_PATH,
    charset_path: str = CHARSET_PATH,
    resize_param: ResizeParam = ResizeParam.from_pair(RESIZE_PARAM),
    channels: int = NUM_CHANNELS,
) -> Classifier:
    try:
        with open(model_path, 'rb') as f:
            model = f.read()
    except OSError as e:
        raise ModelLoadError(f'Cannot read model {model_path}: {e}') from e

    classifier = Classifier.from_model(model, load_charset(charset_path), resize_param, channels)
    logger.info('Loaded model %s (%d glyphs)', model_path, len(classifier.charset))
    return classifier
