"""
Pytest Configuration and Shared Fixtures

Synthetic card photos and stand-in inference sessions, so the suite runs
without any model files.
"""

import numpy as np
import pytest


class FakeSession:
    """Minimal inference session: records inputs, returns canned outputs.

    ``outputs`` is called with the input batch and returns the list of
    output arrays the model would produce.
    """

    def __init__(self, input_shape, outputs):
        self.input_names = ["images"]
        self.output_names = ["output0"]
        self.input_shape = list(input_shape)
        self._outputs = outputs
        self.batches = []

    def get_input_feed(self, image_array):
        return {self.input_names[0]: image_array}

    def run(self, input_data):
        batch = input_data[self.input_names[0]]
        self.batches.append(batch.shape)
        return self._outputs(batch)


# Source photo: 800x600 black frame with a white 400x250 card
CARD_IMAGE_SIZE = (800, 600)
CARD_XYXY = (200, 150, 600, 400)

# 800x600 letterboxed into 640x640: ratio 0.8, 80 px padding on top.
# A box 10 px (original) larger than the card on every side.
SEG_BOX_INPUT = [152.0, 192.0, 488.0, 408.0]


def one_hot_logits(indices, num_classes, high=10.0):
    """Logits [T, C] whose argmax path is ``indices``."""
    logits = np.zeros((len(indices), num_classes), dtype=np.float32)
    for t, idx in enumerate(indices):
        logits[t, idx] = high
    return logits


@pytest.fixture
def fake_session():
    """Factory for FakeSession instances."""
    return FakeSession


@pytest.fixture
def card_image():
    """BGR photo with one bright landscape card on a dark background."""
    width, height = CARD_IMAGE_SIZE
    image = np.zeros((height, width, 3), dtype=np.uint8)
    x1, y1, x2, y2 = CARD_XYXY
    image[y1:y2, x1:x2] = 255
    return image


@pytest.fixture
def segmenter_outputs():
    """Build a YOLO-seg output callable for one box with a uniform mask.

    ``mask_logit`` > 0 gives a full mask, < 0 an empty one.
    """

    def build(score=0.95, class_id=1, mask_logit=10.0, rows=1):
        def outputs(batch):
            row = SEG_BOX_INPUT + [score, class_id, 1.0]
            boxes = np.array([[row] * rows], dtype=np.float32).reshape(1, rows, 7)
            protos = np.full((1, 1, 160, 160), mask_logit, dtype=np.float32)
            return [boxes, protos]

        return outputs

    return build


@pytest.fixture
def detector_outputs():
    """DB logits with one 100x20 text block on a 320x320 input."""

    def outputs(batch):
        logits = np.full((batch.shape[0], 1, 320, 320), -10.0, dtype=np.float32)
        logits[:, :, 100:120, 40:140] = 10.0
        return [logits]

    return outputs


@pytest.fixture
def recognizer_outputs():
    """CRNN logits spelling "ab" for every crop (vocab "ab", blank = 2)."""

    def outputs(batch):
        path = one_hot_logits([0, 2, 1, 1], num_classes=3)
        return [np.repeat(path[None], batch.shape[0], axis=0)]

    return outputs
