import numpy as np
import cv2
import pytest

from superres.colour import extract_luma, preprocess_ycrcb, reconstruct_ycrcb, to_uint8
from superres.errors import PreconditionError, ShapeMismatchError, UnsupportedFormatError


def test_grey_round_trip_at_scale_one(rng):
    image = rng.integers(0, 256, size=(9, 7), dtype=np.uint8)
    reference = preprocess_ycrcb(image)

    restored = reconstruct_ycrcb(reference, reference, 1)

    assert restored.dtype == np.uint8
    assert restored.shape == image.shape
    assert np.abs(restored.astype(int) - image.astype(int)).max() <= 1


def test_grey_with_channel_axis_is_accepted():
    image = np.full((3, 5, 1), 51, dtype=np.uint8)
    reference = preprocess_ycrcb(image)
    assert reference.shape == (3, 5)
    np.testing.assert_allclose(reference, 0.2, rtol=1e-6)


def test_float_input_is_also_divided_by_255():
    image = np.array([[255.0, 0.0], [127.5, 51.0]], dtype=np.float32)
    reference = preprocess_ycrcb(image)
    np.testing.assert_allclose(reference, [[1.0, 0.0], [0.5, 0.2]], rtol=1e-6)


def test_colour_reference_is_normalised_ycrcb(rng):
    image = rng.integers(0, 256, size=(6, 8, 3), dtype=np.uint8)
    reference = preprocess_ycrcb(image)

    assert reference.dtype == np.float32
    assert reference.shape == (6, 8, 3)
    expected = cv2.cvtColor(image, cv2.COLOR_BGR2YCrCb).astype(np.float32) / 255.0
    np.testing.assert_allclose(reference, expected, atol=1e-6)


def test_float_colour_input_is_converted_in_float(rng):
    image = rng.integers(0, 256, size=(6, 8, 3), dtype=np.uint8)
    from_float = preprocess_ycrcb(image.astype(np.float32))

    expected = cv2.cvtColor(image.astype(np.float32) * np.float32(1 / 255), cv2.COLOR_BGR2YCrCb)
    np.testing.assert_allclose(from_float, expected, atol=1e-6)
    # the 8-bit path uses fixed-point arithmetic and rounds each plane
    np.testing.assert_allclose(from_float, preprocess_ycrcb(image), atol=2.0 / 255.0)


@pytest.mark.parametrize("image", [
    np.zeros((4, 4), dtype=np.int16),
    np.zeros((4, 4, 3), dtype=np.float64),
    np.zeros((4, 4, 4), dtype=np.uint8),
    np.zeros((4,), dtype=np.uint8),
    [[1, 2], [3, 4]],
])
def test_unsupported_images_are_rejected(image):
    with pytest.raises(UnsupportedFormatError):
        preprocess_ycrcb(image)


def test_extract_luma_builds_single_channel_tensor(rng):
    image = rng.integers(0, 256, size=(5, 6, 3), dtype=np.uint8)
    reference = preprocess_ycrcb(image)

    tensor = extract_luma(reference)

    assert tensor.shape == (1, 1, 5, 6)
    assert tensor.dtype == np.float32
    assert tensor.flags["C_CONTIGUOUS"]
    np.testing.assert_array_equal(tensor[0, 0], reference[:, :, 0])


def test_solid_grey_reconstructs_exactly(solid_bgr):
    image = solid_bgr((128, 128, 128))
    reference = preprocess_ycrcb(image)
    luma = np.kron(reference[:, :, 0], np.ones((2, 2), dtype=np.float32))

    output = reconstruct_ycrcb(luma, reference, 2)

    assert output.shape == (8, 8, 3)
    assert output.dtype == np.uint8
    assert np.all(output == 128)


def test_chroma_planes_are_upscaled_not_dropped(solid_bgr):
    image = solid_bgr((200, 40, 10))
    reference = preprocess_ycrcb(image)
    luma = np.kron(reference[:, :, 0], np.ones((3, 3), dtype=np.float32))

    output = reconstruct_ycrcb(luma, reference, 3)

    expected = cv2.cvtColor(cv2.cvtColor(image, cv2.COLOR_BGR2YCrCb), cv2.COLOR_YCrCb2BGR)
    assert output.shape == (12, 12, 3)
    assert np.all(output == expected[0, 0])


def test_grey_reconstruction_saturates():
    reference = np.zeros((1, 2), dtype=np.float32)
    luma = np.array([[1.5, -0.2, 0.5, 1.0], [0.0, 0.2, 0.4, 0.6]], dtype=np.float32)

    output = reconstruct_ycrcb(luma, reference, 2)

    np.testing.assert_array_equal(output, [[255, 0, 128, 255], [0, 51, 102, 153]])


@pytest.mark.parametrize("luma_shape", [(8, 7), (7, 8), (4, 4), (16, 16)])
def test_reconstruct_refuses_mismatched_sizes(luma_shape):
    reference = preprocess_ycrcb(np.zeros((4, 4, 3), dtype=np.uint8))
    luma = np.zeros(luma_shape, dtype=np.float32)

    with pytest.raises(ShapeMismatchError):
        reconstruct_ycrcb(luma, reference, 2)


def test_size_mismatch_is_a_precondition_error():
    reference = np.zeros((4, 4), dtype=np.float32)
    with pytest.raises(PreconditionError):
        reconstruct_ycrcb(np.zeros((4, 4), dtype=np.float32), reference, 2)


def test_reconstruct_rejects_8bit_reference():
    with pytest.raises(UnsupportedFormatError):
        reconstruct_ycrcb(np.zeros((8, 8), np.float32), np.zeros((4, 4, 3), np.uint8), 2)


def test_to_uint8_rounds_half_to_even():
    np.testing.assert_array_equal(to_uint8(np.array([0.5, 1.5, 254.6, 300.0, -3.0])),
                                  [0, 2, 255, 255, 0])
