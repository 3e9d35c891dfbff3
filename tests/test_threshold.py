import numpy as np
import pytest

from pather.threshold import (between_class_variance, binarize, equalize, histogram, intensity_stats,
                              neighbor_mean, otsu_separation, otsu_threshold, seal_border)


def bimodal(low=50, high=200, shape=(8, 8)):
    img = np.full(shape, high, dtype=np.uint8)
    img[:, : shape[1] // 2] = low
    return img


def test_histogram_counts_every_pixel():
    img = np.array([[0, 0, 7], [255, 7, 7]], dtype=np.uint8)
    hist = histogram(img)
    assert hist.shape == (256,)
    assert hist.sum() == img.size
    assert hist[0] == 2 and hist[7] == 3 and hist[255] == 1


def test_histogram_leaves_input_untouched():
    img = bimodal()
    before = img.copy()
    histogram(img)
    np.testing.assert_array_equal(img, before)


def test_otsu_splits_bimodal_image_at_lower_mode():
    hist = histogram(bimodal())
    # every level in [50, 200) scores the same; the first one wins
    assert otsu_threshold(hist, 64) == 50


def test_otsu_is_pure():
    img = np.random.default_rng(7).integers(0, 256, size=(20, 20), dtype=np.uint8)
    hist = histogram(img)
    first = otsu_threshold(hist, img.size)
    assert all(otsu_threshold(hist, img.size) == first for _ in range(5))
    assert otsu_threshold(hist) == first


def test_otsu_degenerate_inputs_return_zero():
    assert otsu_threshold(histogram(np.full((5, 5), 128, dtype=np.uint8))) == 0
    assert otsu_threshold(np.zeros(256, dtype=np.int64)) == 0


def test_intensity_stats_population_std():
    mean, std = intensity_stats(histogram(np.array([[0, 0, 10, 10]], dtype=np.uint8)))
    assert mean == pytest.approx(5.0)
    assert std == pytest.approx(5.0)
    assert intensity_stats(np.zeros(256)) == (0.0, 0.0)


def test_equalize_maps_through_cdf():
    img = np.array([[10, 20, 20, 30, 30, 30, 30, 30]], dtype=np.uint8)
    out = equalize(img)
    np.testing.assert_array_equal(out, [[32, 96, 96, 255, 255, 255, 255, 255]])
    assert out.dtype == np.uint8


def test_equalize_preserves_ordering():
    img = np.random.default_rng(3).integers(40, 90, size=(16, 16), dtype=np.uint8)
    out = equalize(img, histogram(img))
    order = np.argsort(img.ravel(), kind='stable')
    assert np.all(np.diff(out.ravel()[order].astype(int)) >= 0)
    assert out.max() == 255


def test_seal_border_width():
    mask = np.full((6, 6), 255, dtype=np.uint8)
    seal_border(mask, 2)
    assert mask[2:4, 2:4].tolist() == [[255, 255], [255, 255]]
    assert np.count_nonzero(mask) == 4


def test_binarize_outputs_only_two_levels():
    img = np.random.default_rng(11).integers(0, 256, size=(12, 15), dtype=np.uint8)
    for average in (False, True):
        mask = binarize(img, 99, neighbor_average=average)
        assert set(np.unique(mask)) <= {0, 255}


def test_binarize_dark_pixels_walkable_and_border_sealed():
    img = np.full((5, 5), 200, dtype=np.uint8)
    img[2, :] = 20
    mask = binarize(img, 99)
    assert mask[2, 1:4].tolist() == [255, 255, 255]
    assert mask[2, 0] == 0 and mask[2, 4] == 0
    assert mask[1, 2] == 0


def test_binarize_light_polarity():
    img = np.full((5, 5), 200, dtype=np.uint8)
    img[2, :] = 20
    mask = binarize(img, 99, dark_is_walkable=False)
    assert mask[1, 1] == 255
    assert mask[2, 2] == 0
    assert mask[0, 2] == 0


def test_binarize_threshold_is_exclusive():
    img = np.full((3, 3), 99, dtype=np.uint8)
    assert binarize(img, 99)[1, 1] == 255
    assert binarize(img, 98)[1, 1] == 0


def test_binarize_neighbor_average_smooths_speckle():
    img = np.zeros((5, 5), dtype=np.uint8)
    img[2, 2] = 250  # isolated bright speck in a dark field
    assert binarize(img, 99)[2, 2] == 0
    assert binarize(img, 99, neighbor_average=True)[2, 2] == 255


def test_binarize_does_not_write_source():
    img = bimodal()
    before = img.copy()
    binarize(img, 120, neighbor_average=True)
    np.testing.assert_array_equal(img, before)


def test_neighbor_mean_shape_and_value():
    img = np.arange(16, dtype=np.uint8).reshape(4, 4)
    means = neighbor_mean(img)
    assert means.shape == (2, 2)
    assert means[0, 0] == pytest.approx(5.0)


def test_otsu_separation_scores_two_level_image():
    img = np.zeros((6, 6), dtype=np.uint8)
    img[:, 3:] = 255
    level, score = otsu_separation(histogram(img))
    assert level == 0
    assert score > 0.0
    sigma = between_class_variance(histogram(img))
    assert np.allclose(sigma[:255], score)
    assert sigma[255] == 0.0


def test_otsu_separation_uniform_scores_zero():
    assert otsu_separation(histogram(np.full((4, 4), 77, dtype=np.uint8))) == (0, 0.0)


def test_equalize_rounds_halves_up():
    img = np.array([[0, 255], [0, 255]], dtype=np.uint8)
    np.testing.assert_array_equal(equalize(img), [[128, 255], [128, 255]])
