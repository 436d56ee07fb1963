"""Unit tests for greedy CTC decoding."""

import numpy as np
import pytest

from idcard_reader.libs.onnx_ocr import DEFAULT_VOCAB, CTCLabelDecode

A, B, BLANK = 0, 1, 2


def logits_for(*paths, num_classes=3, high=10.0):
    """Batch of logits [N, T, C] whose argmax paths are ``paths``."""
    steps = max(len(p) for p in paths)
    out = np.zeros((len(paths), steps, num_classes), dtype=np.float32)
    for n, path in enumerate(paths):
        for t, idx in enumerate(path):
            out[n, t, idx] = high
        for t in range(len(path), steps):
            out[n, t, num_classes - 1] = high
    return out


@pytest.fixture
def decoder():
    return CTCLabelDecode(vocab="ab")


class TestCTCLabelDecode:
    """Test collapse rules and batching."""

    def test_blank_is_last_class(self, decoder):
        assert decoder.blank == 2
        assert decoder.num_classes == 3

    def test_repeats_collapse(self, decoder):
        preds = logits_for([A, A, BLANK, B, B, B, BLANK])

        assert decoder(preds) == ["ab"]

    def test_blank_separates_repeated_symbol(self, decoder):
        preds = logits_for([BLANK, A, BLANK, A])

        assert decoder(preds) == ["aa"]

    def test_all_blank(self, decoder):
        assert decoder(logits_for([BLANK, BLANK, BLANK])) == [""]

    def test_batch_order_preserved(self, decoder):
        preds = logits_for([B, BLANK], [A], [A, B, A])

        assert decoder(preds) == ["b", "a", "aba"]

    def test_confidence_is_weakest_step(self, decoder):
        preds = logits_for([A, B])
        preds[0, 1] = [0.0, 1.0, 0.0]  # uncertain second step

        (text, confidence), = decoder.decode_with_confidence(preds)

        expected = np.exp(1.0) / (np.exp(1.0) + 2.0)
        assert text == "ab"
        assert confidence == pytest.approx(expected, rel=1e-5)

    def test_first_index_wins_ties(self, decoder):
        preds = np.zeros((1, 1, 3), dtype=np.float32)

        assert decoder(preds) == ["a"]

    def test_class_count_mismatch_raises(self, decoder):
        with pytest.raises(ValueError, match="classes"):
            decoder(np.zeros((1, 4, 5), dtype=np.float32))

    def test_wrong_rank_raises(self, decoder):
        with pytest.raises(ValueError):
            decoder(np.zeros((4, 3), dtype=np.float32))

    def test_empty_sequence(self, decoder):
        assert decoder.decode(np.array([], dtype=np.int64)) == ""


class TestVocabulary:
    """Test vocabulary sources."""

    def test_default_vocabulary(self):
        decoder = CTCLabelDecode()

        assert decoder.character == list(DEFAULT_VOCAB)
        assert decoder.num_classes == len(DEFAULT_VOCAB) + 1

    def test_dictionary_file(self, tmp_path):
        path = tmp_path / "dict.txt"
        path.write_text("x\ny\nz\n", encoding="utf-8")

        decoder = CTCLabelDecode(character_dict_path=path)

        assert decoder.character == ["x", "y", "z"]
        assert decoder(logits_for([2, 3, 0], num_classes=4)) == ["zx"]

    def test_empty_vocabulary_rejected(self):
        with pytest.raises(ValueError):
            CTCLabelDecode(vocab="")
