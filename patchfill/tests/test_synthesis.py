import unittest

import numpy as np

from patchfill.config import SynthesisConfig
from patchfill.mask import analyze_mask
from patchfill.synthesis import find_donor, search_donors, spiral_offsets, synthesize
from patchfill.types import DonorMatch, ReferenceColor


def _single_target_scene(size: int = 60, target=(20, 20)):
    image = np.zeros((size, size, 4), dtype=np.uint8)
    image[..., 3] = 255
    alpha = np.zeros((size, size), dtype=np.float32)
    alpha[target[1], target[0]] = 1.0
    return image, alpha


class SpiralOffsetsTest(unittest.TestCase):
    def test_default_table(self) -> None:
        offsets = spiral_offsets()

        self.assertEqual(offsets.shape, (96, 3))
        self.assertEqual(offsets[0].tolist(), [0.0, 8.0, 0.0])
        self.assertTrue(np.all(np.diff(offsets[:, 0]) >= 0))
        radii = np.hypot(offsets[:, 1], offsets[:, 2])
        self.assertAlmostEqual(float(radii.max()), 96.0)

    def test_custom_radius(self) -> None:
        offsets = spiral_offsets(SynthesisConfig(search_radius=17, radius_step=8, angle_count=4))

        self.assertEqual(offsets.shape, (8, 3))
        self.assertEqual(offsets[:, 0].tolist(), [0, 0, 0, 0, 1, 1, 1, 1])


class FindDonorTest(unittest.TestCase):
    reference = ReferenceColor(100.0, 100.0, 100.0)

    def test_stops_at_first_ring_under_threshold(self) -> None:
        image, alpha = _single_target_scene()
        image[20, 28, :3] = (105, 100, 100)
        image[20, 36, :3] = (100, 100, 100)

        match = find_donor(20, 20, image, alpha, self.reference)

        self.assertEqual(match, DonorMatch(x=28, y=20, distance=5.0))

    def test_continues_until_threshold_is_met(self) -> None:
        image, alpha = _single_target_scene()
        image[20, 28, :3] = (120, 100, 100)
        image[20, 36, :3] = (100, 100, 100)

        match = find_donor(20, 20, image, alpha, self.reference)

        self.assertEqual(match, DonorMatch(x=36, y=20, distance=0.0))

    def test_ties_keep_first_in_search_order(self) -> None:
        image, alpha = _single_target_scene()
        image[20, 28, :3] = (120, 100, 100)
        image[28, 20, :3] = (100, 120, 100)

        match = find_donor(20, 20, image, alpha, self.reference)

        self.assertEqual(match, DonorMatch(x=28, y=20, distance=20.0))

    def test_masked_pixels_are_not_donors(self) -> None:
        image, alpha = _single_target_scene()
        image[20, 28, :3] = (100, 100, 100)
        alpha[20, 28] = 13 / 255

        match = find_donor(20, 20, image, alpha, self.reference)

        self.assertEqual(match, DonorMatch(x=26, y=26, distance=300.0))

    def test_no_donor_within_radius(self) -> None:
        image, alpha = _single_target_scene(size=5, target=(2, 2))

        self.assertIsNone(find_donor(2, 2, image, alpha, self.reference))


class SearchDonorsTest(unittest.TestCase):
    def test_matches_scalar_search(self) -> None:
        rng = np.random.default_rng(7)
        image = rng.integers(0, 256, size=(48, 48, 4), dtype=np.uint8)
        alpha = np.zeros((48, 48), dtype=np.float32)
        alpha[10:30, 12:34] = 1.0
        alpha[rng.random((48, 48)) < 0.05] = 0.5
        reference = ReferenceColor(120.0, 90.0, 60.0)
        ys, xs = np.nonzero(alpha > 0.1)

        for threshold in (15.0, 150.0):
            config = SynthesisConfig(match_threshold=threshold, batch_size=50)
            donor_x, donor_y, distance, found = search_donors(xs, ys, image, alpha, reference, config)
            for i, (x, y) in enumerate(zip(xs, ys)):
                expected = find_donor(int(x), int(y), image, alpha, reference, config)
                self.assertIsNotNone(expected)
                self.assertTrue(found[i])
                self.assertEqual(
                    DonorMatch(x=int(donor_x[i]), y=int(donor_y[i]), distance=float(distance[i])),
                    expected,
                )

    def test_reports_missing_donors(self) -> None:
        image = np.zeros((5, 5, 4), dtype=np.uint8)
        alpha = np.zeros((5, 5), dtype=np.float32)
        alpha[2, 2] = 1.0

        _, _, distance, found = search_donors(
            np.array([2]), np.array([2]), image, alpha, ReferenceColor(0.0, 0.0, 0.0)
        )

        self.assertFalse(found[0])
        self.assertTrue(np.isinf(distance[0]))


class SynthesizeTest(unittest.TestCase):
    def test_donors_are_pulled_toward_reference(self) -> None:
        image = np.zeros((60, 60, 4), dtype=np.uint8)
        image[..., :3] = 90
        image[..., 3] = 255
        mask = np.zeros((60, 60), dtype=np.uint8)
        mask[25:35, 25:35] = 255
        analysis = analyze_mask(mask)
        working = image.copy()

        stats = synthesize(image, working, analysis.alpha, analysis.bbox, ReferenceColor(110.0, 110.0, 110.0))

        self.assertEqual(stats.filled, 100)
        self.assertEqual(stats.missing, 0)
        self.assertTrue(np.all(working[25:35, 25:35, :3] == 107))
        untouched = ~analysis.masked
        self.assertTrue(np.array_equal(working[untouched], image[untouched]))

    def test_pixels_without_donor_are_left_unmodified(self) -> None:
        image = np.zeros((5, 5, 4), dtype=np.uint8)
        image[..., :3] = 90
        image[2, 2, :3] = 30
        mask = np.zeros((5, 5), dtype=np.uint8)
        mask[2, 2] = 255
        analysis = analyze_mask(mask)
        working = image.copy()

        stats = synthesize(image, working, analysis.alpha, analysis.bbox, ReferenceColor(90.0, 90.0, 90.0))

        self.assertEqual((stats.filled, stats.missing), (0, 1))
        self.assertTrue(np.array_equal(working, image))

    def test_low_alpha_pixels_are_not_targets(self) -> None:
        image = np.zeros((40, 40, 4), dtype=np.uint8)
        mask = np.zeros((40, 40), dtype=np.uint8)
        mask[10:12, 10:12] = 20  # 0.078: masked, but below the fill threshold
        analysis = analyze_mask(mask)
        working = image.copy()

        stats = synthesize(image, working, analysis.alpha, analysis.bbox, ReferenceColor(50.0, 50.0, 50.0))

        self.assertEqual(stats.total, 0)
        self.assertTrue(np.array_equal(working, image))


if __name__ == "__main__":
    unittest.main()
