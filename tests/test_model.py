import unittest

import numpy as np

from wfcgen import image_from_chars
from wfcgen.basis import CARDINAL_WITH_DIAGONALS, DOWN, LEFT, RIGHT, UP
from wfcgen.model import (
    Model,
    ModelError,
    Tileset,
    build_model,
    from_overlapping_tiles,
    from_pixels,
    from_tiles,
)

RED = [255, 0, 7, 255]
BLACK = [0, 0, 0, 255]


class TilesetTester(unittest.TestCase):
    def test_add_deduplicates(self):
        tileset = Tileset()
        a = tileset.add(b"a", np.zeros((1, 1, 4)))
        b = tileset.add(b"b", np.zeros((1, 1, 4)))
        self.assertEqual((a, b), (0, 1))
        self.assertEqual(tileset.add(b"a", np.zeros((1, 1, 4))), 0)
        self.assertEqual(tileset.num_tiles(), 2)

    def test_connect_deduplicates(self):
        tileset = Tileset()
        a = tileset.add(b"a", np.zeros((1, 1, 4)))
        b = tileset.add(b"b", np.zeros((1, 1, 4)))
        tileset.connect(a, b, [RIGHT, DOWN])
        tileset.connect(a, b, [RIGHT])
        tileset.connect(a, a, [RIGHT])
        self.assertEqual(tileset.propagator[a], [[b, a], [b], [], []])

    def test_empty(self):
        with self.assertRaises(ModelError):
            Tileset().build(0)


class PixelModelTester(unittest.TestCase):
    def test_checker(self):
        model = from_pixels(image_from_chars("RB,BR"), periodic=True)
        self.assertEqual(model.num_symbols, 2)
        np.testing.assert_allclose(model.weights, [0.5, 0.5])
        self.assertEqual(model.payloads.shape, (2, 1, 1, 4))
        self.assertEqual(model.payloads[0, 0, 0].tolist(), RED)
        self.assertEqual(model.payloads[1, 0, 0].tolist(), BLACK)
        self.assertEqual(model.propagator, [[[1]] * 4, [[0]] * 4])
        self.assertEqual(model.tile_size, 1)

    def test_non_periodic_skips_edges(self):
        model = from_pixels(image_from_chars("RRB"), periodic=False)
        np.testing.assert_allclose(model.weights, [2 / 3, 1 / 3])
        red, black = 0, 1
        self.assertEqual(model.propagator[red][RIGHT], [red, black])
        self.assertEqual(model.propagator[red][LEFT], [red])
        self.assertEqual(model.propagator[black][RIGHT], [])
        self.assertEqual(model.propagator[black][LEFT], [red])
        self.assertEqual(model.propagator[red][UP], [])
        self.assertEqual(model.propagator[red][DOWN], [])

    def test_periodic_wraps(self):
        model = from_pixels(image_from_chars("RRB"), periodic=True)
        red, black = 0, 1
        self.assertEqual(model.propagator[black][RIGHT], [red])
        self.assertEqual(model.propagator[red][LEFT], [black, red])
        self.assertEqual(model.propagator[red][UP], [red])
        self.assertEqual(model.propagator[black][DOWN], [black])

    def test_diagonal_basis(self):
        model = from_pixels(
            image_from_chars("RB,BR"), basis=CARDINAL_WITH_DIAGONALS, periodic=True
        )
        for d in range(4, 8):
            self.assertEqual(model.propagator[0][d], [0])
            self.assertEqual(model.propagator[1][d], [1])

    def test_alpha_distinguishes_colours(self):
        image = np.zeros((1, 2, 4), dtype=np.uint8)
        image[0, 1, 3] = 255
        self.assertEqual(from_pixels(image).num_symbols, 2)

    def test_empty_source(self):
        with self.assertRaises(ModelError):
            from_pixels(np.zeros((0, 0, 4), dtype=np.uint8))

    def test_rejects_rgb(self):
        with self.assertRaises(ValueError):
            from_pixels(np.zeros((2, 2, 3), dtype=np.uint8))


class TileModelTester(unittest.TestCase):
    def test_non_overlapping(self):
        image = image_from_chars("RRBB,RRBB,BBRR,BBRR")
        model = from_tiles(image, 2)
        self.assertEqual(model.num_symbols, 2)
        self.assertEqual(model.tile_size, 2)
        np.testing.assert_allclose(model.weights, [0.5, 0.5])
        self.assertEqual(model.payloads.shape, (2, 2, 2, 4))
        self.assertTrue((model.payloads[0] == RED).all())
        self.assertTrue((model.payloads[1] == BLACK).all())
        self.assertEqual(model.propagator, [[[1]] * 4, [[0]] * 4])

    def test_non_overlapping_requires_divisible_source(self):
        with self.assertRaises(ValueError):
            from_tiles(image_from_chars("RRB,RRB,RRB"), 2)

    def test_overlapping_wraps_blocks(self):
        model = from_overlapping_tiles(image_from_chars("RB"), 2)
        self.assertEqual(model.num_symbols, 2)
        np.testing.assert_allclose(model.weights, [0.5, 0.5])
        self.assertEqual(model.payloads[0, :, 0].tolist(), [RED, RED])
        self.assertEqual(model.payloads[0, :, 1].tolist(), [BLACK, BLACK])
        self.assertEqual(model.payloads[1, :, 0].tolist(), [BLACK, BLACK])
        self.assertEqual(model.propagator, [[[1], [], [], []], [[], [], [0], []]])

    def test_overlapping_counts_every_pixel(self):
        model = from_overlapping_tiles(image_from_chars("RRB,RBB,BBR"), 2, periodic=True)
        self.assertAlmostEqual(model.weights.sum(), 1.0)
        self.assertEqual(len(model.keys), model.num_symbols)

    def test_build_model_by_name(self):
        image = image_from_chars("RB,BR")
        self.assertEqual(build_model("simple-pixel", image).tile_size, 1)
        self.assertEqual(build_model("non-overlapping-tile", image, tile_size=2).num_symbols, 1)
        self.assertEqual(build_model("overlapping-tile", image, tile_size=2).num_symbols, 2)
        with self.assertRaises(ValueError):
            build_model("voxel", image)


class ModelTester(unittest.TestCase):
    def test_rejects_mismatched_payloads(self):
        with self.assertRaises(ModelError):
            Model([0.5, 0.5], np.zeros((1, 1, 1, 4)), [[[], [], [], []]] * 2)

    def test_rejects_wrong_direction_count(self):
        with self.assertRaises(ModelError):
            Model([1.0], np.zeros((1, 1, 1, 4)), [[[], []]])

    def test_duplicate_neighbours_collapse(self):
        payloads = np.zeros((2, 1, 1, 4))
        model = Model([0.5, 0.5], payloads, [[[1, 1, 0], [1], [1], [1]], [[0], [0], [0], [0, 0]]])
        self.assertEqual(model.propagator[0][RIGHT], [1, 0])
        self.assertEqual(model.propagator[1][UP], [0])

    def test_rejects_no_symbols(self):
        with self.assertRaises(ModelError):
            Model([], [], [])


if __name__ == "__main__":
    unittest.main()
