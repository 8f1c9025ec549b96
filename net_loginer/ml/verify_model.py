"""Verify a recognition model matches the contract expected by captcha_solver.py."""

import argparse
import sys

import numpy as np

from net_loginer.configs.common import CHARSET_PATH, MODEL_PATH, NUM_CHANNELS, RESIZE_PARAM
from net_loginer.errors import NetLoginerError
from net_loginer.ml.captcha_solver import Classifier, load_classifier
from net_loginer.ml.preprocess import ResizeParam
from net_loginer.view.console import console


def verify(classifier: Classifier, sample_width: int = 160) -> bool:
    session = classifier.session
    channels = classifier.channels
    resize_param = classifier.resize_param

    inputs = session.get_inputs()
    assert len(inputs) == 1, f'Expected 1 input, got {len(inputs)}'
    inp = inputs[0]
    assert inp.type == 'tensor(float)', f'Input type: {inp.type}'
    shape = inp.shape
    assert len(shape) == 4, f'Input rank: expected 4 (NCHW), got {shape}'
    assert shape[1] in (channels, None) or isinstance(shape[1], str), \
        f'Input channels: expected {channels}, got {shape[1]}'
    if resize_param.height is not None and isinstance(shape[2], int):
        assert shape[2] == resize_param.height, \
            f'Input height: expected {resize_param.height}, got {shape[2]}'

    # Dummy inference on a blank canvas of the configured size
    width, height = resize_param.target_size(sample_width, resize_param.height or sample_width)
    dummy = np.zeros((1, channels, height, width), dtype=np.float32)
    labels = classifier.infer(dummy)
    assert labels, 'Model produced no output steps'
    assert all(0 <= v < len(classifier.charset) for v in labels), \
        f'Labels outside charset of size {len(classifier.charset)}: {max(labels)}'

    console.print(
        f'[bold green]✓[/bold green]  All checks passed! '
        f'[dim]({len(labels)} steps, {len(classifier.charset)} glyphs)[/dim]'
    )
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description='Verify captcha recognition model')
    parser.add_argument('model', nargs='?', default=MODEL_PATH, help='Path to ONNX model')
    parser.add_argument('--charset', default=CHARSET_PATH, help='Path to charset JSON')
    parser.add_argument('--resize', type=int, nargs=2, default=list(RESIZE_PARAM),
                        metavar=('W', 'H'), help='Resize rule, -1 marks the derived side')
    parser.add_argument('--channels', type=int, choices=[1, 3], default=NUM_CHANNELS)
    args = parser.parse_args()

    try:
        classifier = load_classifier(
            args.model, args.charset, ResizeParam.from_pair(args.resize), args.channels,
        )
        verify(classifier)
    except (AssertionError, NetLoginerError) as e:
        console.print(f'[bold red]✗[/bold red]  FAILED: {e}')
        sys.exit(1)


if __name__ == '__main__':
    main()
