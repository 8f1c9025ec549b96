"""Captcha image -> normalized NCHW float tensor.

The mean/std constants and the luma weights are part of the model's training
contract; changing them silently degrades recognition.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from net_loginer.errors import ImageDecodeError

GRAY_MEAN_STD = ((0.456, 0.224),)
RGB_MEAN_STD = ((0.485, 0.229), (0.456, 0.224), (0.406, 0.225))
LUMA_WEIGHTS = np.array([0.2989, 0.5870, 0.1140], dtype=np.float64)


@dataclass(frozen=True)
class ResizeParam:
    """Target size rule; ``None`` marks the side derived from the aspect ratio."""
    width: Optional[int] = None
    height: Optional[int] = None

    def __post_init__(self) -> None:
        if self.width is None and self.height is None:
            raise ValueError('ResizeParam needs a width, a height, or both')
        for side in (self.width, self.height):
            if side is not None and side <= 0:
                raise ValueError(f'Resize side must be positive, got {side}')

    @classmethod
    def fixed_width(cls, width: int) -> 'ResizeParam':
        return cls(width=width)

    @classmethod
    def fixed_height(cls, height: int) -> 'ResizeParam':
        return cls(height=height)

    @classmethod
    def fixed(cls, width: int, height: int) -> 'ResizeParam':
        return cls(width=width, height=height)

    @classmethod
    def from_pair(cls, pair: Sequence[int]) -> 'ResizeParam':
        """Build from ``[width, height]`` where -1 marks the derived side."""
        width, height = pair
        return cls(
            width=None if width == -1 else int(width),
            height=None if height == -1 else int(height),
        )

    def target_size(self, width: int, height: int) -> Tuple[int, int]:
        if self.width is not None and self.height is not None:
            return self.width, self.height
        if self.height is not None:
            return max(1, int(width * self.height / height + 0.5)), self.height
        return self.width, max(1, int(height * self.width / width + 0.5))


def decode_image(img_bytes: bytes) -> np.ndarray:
    """Decode compressed bytes into an HxWx3 uint8 RGB array."""
    if not img_bytes:
        raise ImageDecodeError('Empty captcha image')
    buf = np.frombuffer(img_bytes, dtype=np.uint8)
    try:
        img_bgr = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise ImageDecodeError(f'Cannot decode captcha image: {e}') from e
    if img_bgr is None:
        raise ImageDecodeError(f'Cannot decode captcha image ({len(img_bytes)} bytes)')
    return cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)


def resize(img: np.ndarray, resize_param: ResizeParam) -> np.ndarray:
    height, width = img.shape[:2]
    target_w, target_h = resize_param.target_size(width, height)
    if (target_w, target_h) == (width, height):
        return img
    return cv2.resize(img, (target_w, target_h), interpolation=cv2.INTER_LANCZOS4)


def to_luma(img_rgb: np.ndarray) -> np.ndarray:
    """RGB -> 8-bit luma using fixed weights, whatever decoder produced the RGB."""
    luma = img_rgb.astype(np.float64) @ LUMA_WEIGHTS
    return np.clip(np.rint(luma), 0, 255).astype(np.uint8)


def normalize(samples: np.ndarray, mean_std: Sequence[Tuple[float, float]]) -> np.ndarray:
    """CHW uint8 samples -> CHW float32, ``(raw / 255 - mean_c) / std_c`` per channel."""
    out = samples.astype(np.float32) / np.float32(255.0)
    for c, (mean, std) in enumerate(mean_std):
        out[c] = (out[c] - np.float32(mean)) / np.float32(std)
    return out


def to_tensor(img_bytes: bytes, resize_param: ResizeParam, channels: int) -> np.ndarray:
    """Build the ``(1, channels, height, width)`` float32 input of the recognition model."""
    if channels not in (1, 3):
        raise ValueError(f'Unsupported channel count: {channels}')

    img = resize(decode_image(img_bytes), resize_param)
    if channels == 1:
        chw = to_luma(img)[np.newaxis, :, :]
        mean_std = GRAY_MEAN_STD
    else:
        chw = np.transpose(img, (2, 0, 1))
        mean_std = RGB_MEAN_STD

    tensor = normalize(chw, mean_std)
    return np.ascontiguousarray(tensor[np.newaxis, ...])
