import unittest

import numpy as np

from patchfill.errors import DimensionMismatch
from patchfill.mask import analyze_mask, luminance_to_alpha, prepare_brush_mask, validate_inputs
from patchfill.types import BoundingBox


def _rgba_mask(height: int, width: int) -> np.ndarray:
    return np.zeros((height, width, 4), dtype=np.uint8)


class AnalyzeMaskTest(unittest.TestCase):
    def test_bounding_box_encloses_masked_pixels(self) -> None:
        mask = _rgba_mask(8, 10)
        mask[3:5, 2:6, 3] = 255

        analysis = analyze_mask(mask)

        self.assertFalse(analysis.is_empty)
        self.assertEqual(analysis.bbox, BoundingBox(min_x=2, max_x=5, min_y=3, max_y=4))
        self.assertEqual(analysis.alpha.shape, (8, 10))
        self.assertAlmostEqual(float(analysis.alpha[3, 2]), 1.0)
        self.assertEqual(int(analysis.masked.sum()), 8)

    def test_threshold_is_exclusive(self) -> None:
        mask = _rgba_mask(6, 6)
        mask[5, 5, 3] = 12  # 0.047, below the threshold
        mask[1, 1, 3] = 13  # 0.051, above it

        analysis = analyze_mask(mask)

        self.assertEqual(analysis.bbox, BoundingBox(min_x=1, max_x=1, min_y=1, max_y=1))

    def test_empty_mask(self) -> None:
        analysis = analyze_mask(_rgba_mask(4, 4))

        self.assertTrue(analysis.is_empty)
        self.assertIsNone(analysis.bbox)
        self.assertEqual(float(analysis.alpha.max()), 0.0)

    def test_color_channels_are_ignored(self) -> None:
        mask = _rgba_mask(4, 4)
        mask[..., :3] = 255

        self.assertTrue(analyze_mask(mask).is_empty)

    def test_plane_input_is_coverage(self) -> None:
        plane = np.zeros((5, 7), dtype=np.uint8)
        plane[1:3, 4:7] = 200

        analysis = analyze_mask(plane)

        self.assertEqual(analysis.bbox, BoundingBox(min_x=4, max_x=6, min_y=1, max_y=2))
        self.assertAlmostEqual(float(analysis.alpha[1, 4]), 200 / 255, places=6)

    def test_mask_without_alpha_covers_everything(self) -> None:
        analysis = analyze_mask(np.zeros((3, 4, 3), dtype=np.uint8))

        self.assertEqual(analysis.bbox, BoundingBox(min_x=0, max_x=3, min_y=0, max_y=2))


class ValidateInputsTest(unittest.TestCase):
    def test_rejects_mismatched_sizes(self) -> None:
        image = np.zeros((10, 10, 3), dtype=np.uint8)
        mask = _rgba_mask(10, 9)

        with self.assertRaises(DimensionMismatch):
            validate_inputs(image, mask)

    def test_normalizes_rgb_source(self) -> None:
        image = np.full((2, 3, 3), 7, dtype=np.uint8)

        rgba, plane = validate_inputs(image, _rgba_mask(2, 3))

        self.assertEqual(rgba.shape, (2, 3, 4))
        self.assertTrue(np.all(rgba[..., 3] == 255))
        self.assertTrue(np.all(rgba[..., :3] == 7))
        self.assertEqual(plane.shape, (2, 3))

    def test_rejects_unusable_shape(self) -> None:
        with self.assertRaises(DimensionMismatch):
            validate_inputs(np.zeros((2, 2, 2), dtype=np.uint8), _rgba_mask(2, 2))


class MaskPreparationTest(unittest.TestCase):
    def test_brush_strokes_become_hard_alpha(self) -> None:
        strokes = _rgba_mask(1, 4)
        strokes[0, :, 3] = [0, 1, 2, 255]

        mask = prepare_brush_mask(strokes)

        self.assertEqual(mask[0, :, 3].tolist(), [0, 0, 255, 255])
        self.assertEqual(mask[0, :, 0].tolist(), [0, 0, 255, 255])

    def test_luminance_matte(self) -> None:
        matte = np.zeros((1, 3, 3), dtype=np.uint8)
        matte[0, 1] = 255
        matte[0, 2] = 51

        mask = luminance_to_alpha(matte)

        self.assertEqual(mask[0, :, 3].tolist(), [0, 255, 51])
        self.assertEqual(analyze_mask(mask).bbox, BoundingBox(min_x=1, max_x=2, min_y=0, max_y=0))


if __name__ == "__main__":
    unittest.main()
