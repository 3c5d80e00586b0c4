import numpy as np
import pytest

from paddleocr_decode.errors import InvalidArgumentError
from paddleocr_decode.rec.postprocessing import CTCLabelDecode, decode_batch, load_char_dict

CHARS = ["", "a", "b"]


def one_hot_sequence(indices, max_probs, classes=3, low=0.01):
    probs = np.full((len(indices), classes), low, dtype=np.float32)
    for t, (idx, p) in enumerate(zip(indices, max_probs)):
        probs[t, idx] = p
    return probs


def test_collapse_duplicates_and_blanks():
    max_probs = [0.9, 0.8, 0.7, 0.6, 0.95, 0.5, 0.99]
    probs = one_hot_sequence([1, 1, 0, 2, 2, 2, 0], max_probs)
    (result,) = decode_batch(probs.ravel(), CHARS, 1, 7, 3)

    assert result.text == "ab"
    assert len(result.char_confidences) == 2
    assert result.char_confidences == pytest.approx((0.9, 0.6))
    assert result.confidence == pytest.approx((0.9 + 0.6) / 2)


def test_blank_separates_repeated_symbol():
    probs = one_hot_sequence([1, 0, 1], [0.9, 0.9, 0.7])
    (result,) = decode_batch(probs, CHARS, 1, 3, 3)
    assert result.text == "aa"
    assert result.confidence == pytest.approx(0.8)


def test_all_blank_sequence():
    probs = one_hot_sequence([0, 0, 0, 0], [0.9] * 4)
    (result,) = decode_batch(probs, CHARS, 1, 4, 3)
    assert result.text == ""
    assert result.confidence == 0.0
    assert result.char_confidences == ()


def test_batch_items_decoded_independently():
    first = one_hot_sequence([1, 2, 0], [0.5, 0.5, 0.5])
    second = one_hot_sequence([2, 2, 1], [0.9, 0.9, 0.3])
    flat = np.concatenate([first.ravel(), second.ravel()]).tolist()
    results = decode_batch(flat, CHARS, 2, 3, 3)
    assert [r.text for r in results] == ["ab", "ba"]
    assert results[1].confidence == pytest.approx(0.6)


def test_index_outside_dictionary_is_skipped():
    probs = one_hot_sequence([1, 3, 1], [0.9, 0.9, 0.9], classes=4)
    (result,) = decode_batch(probs, CHARS, 1, 3, 4)
    assert result.text == "aa"


def test_argmax_ties_pick_first_class():
    probs = np.array([[0.1, 0.45, 0.45]], dtype=np.float32)
    (result,) = decode_batch(probs, CHARS, 1, 1, 3)
    assert result.text == "a"


@pytest.mark.parametrize("batch, time, classes", [(1, 7, 3), (2, 2, 3), (-1, 3, 3), (1, 3, 0)])
def test_shape_mismatch_raises(batch, time, classes):
    with pytest.raises(InvalidArgumentError):
        decode_batch(np.zeros(9), CHARS, batch, time, classes)


def test_invalid_argument_is_value_error():
    with pytest.raises(ValueError):
        decode_batch(np.zeros(5), CHARS, 1, 2, 3)


def test_ctc_label_decode_accepts_2d_and_3d():
    decoder = CTCLabelDecode(characters=CHARS)
    probs = one_hot_sequence([2, 0, 1], [0.8, 0.8, 0.8])
    assert decoder(probs)[0].text == "ba"
    assert [r.text for r in decoder(np.stack([probs, probs]))] == ["ba", "ba"]
    assert decoder((np.zeros(1), probs[np.newaxis]))[0].text == "ba"


def test_ctc_label_decode_requires_characters():
    with pytest.raises(InvalidArgumentError):
        CTCLabelDecode()


def test_load_char_dict_injects_blank(tmp_path):
    path = tmp_path / "dict.txt"
    path.write_text("a\nb\n \nç\n", encoding="utf-8")
    chars = load_char_dict(str(path))
    assert len(chars) == 5
    assert chars[0] == ""
    assert chars[1:] == ["a", "b", " ", "ç"]


def test_load_char_dict_space_char(tmp_path):
    path = tmp_path / "dict.txt"
    path.write_text("x\r\ny\r\n", encoding="utf-8")
    assert load_char_dict(str(path), use_space_char=True) == ["", "x", "y", " "]


def test_load_char_dict_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_char_dict(str(tmp_path / "missing.txt"))


def test_decoder_from_dictionary_file(tmp_path):
    path = tmp_path / "dict.txt"
    path.write_text("h\ni\n", encoding="utf-8")
    decoder = CTCLabelDecode(character_dict_path=str(path))
    probs = one_hot_sequence([1, 1, 0, 2], [0.9, 0.9, 0.9, 0.9])
    assert decoder(probs)[0].text == "hi"
