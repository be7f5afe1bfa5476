import logging
import math

import numpy as np

from wfcgen.basis import BASES, CARDINAL, CARDINAL_WITH_DIAGONALS, Basis
from wfcgen.model import (
    MODEL_KINDS,
    Model,
    ModelError,
    Tileset,
    WfcError,
    build_model,
    from_overlapping_tiles,
    from_pixels,
    from_tiles,
)
from wfcgen.palette import PICO8_PALETTE, array_from_chars, image_from_chars
from wfcgen.sampler import sample_discrete
from wfcgen.wave import GenerationIncompleteError, IterationResult, Wfc

log = logging.getLogger(__name__)

MAX_RETRIES = 10


def load_image(filename):
    from PIL import Image

    with Image.open(filename) as img:
        return np.array(img.convert("RGBA"), dtype=np.uint8)


def save_image(filename, arr):
    from PIL import Image

    Image.fromarray(np.ascontiguousarray(arr, dtype=np.uint8)).save(filename)


class FfmpegWriter:
    def __init__(self, filename, dims, skip=1, framerate=60):
        import ffmpeg

        height, width = dims

        self.process = (
            ffmpeg.input(
                "pipe:",
                format="rawvideo",
                pix_fmt="rgb24",
                s="{}x{}".format(width, height),
                framerate=framerate,
            )
            .output(filename, crf=0, vcodec="libx264", preset="ultrafast")
            .global_args("-hide_banner")
            .overwrite_output()
            .run_async(pipe_stdin=True)
        )

        self.dims = dims
        self.skip = skip
        self.index = 0

    def write(self, wfc):
        if self.index % self.skip == 0:
            height, width = self.dims
            frame = wfc.partial_image()[:height, :width, :3]
            self.process.stdin.write(np.ascontiguousarray(frame).tobytes())
        self.index += 1

    def close(self):
        self.process.stdin.close()
        self.process.wait()


def fit_tile_size(tile_size, width, height):
    """Largest tile size <= tile_size that divides both width and height."""
    if tile_size < 1:
        raise ValueError(f"invalid tile size {tile_size}")
    while width % tile_size != 0 or height % tile_size != 0:
        tile_size -= 1
    return tile_size


def create_wfc(
    image,
    dims,
    kind="simple-pixel",
    tile_size=3,
    basis=CARDINAL,
    periodic=True,
    periodic_input=None,
):
    """
    Build a model from `image` and a solver covering `dims` (width, height)
    output pixels. Tile models round the cell grid up, so the rendered image
    may be larger than `dims`.
    """
    if periodic_input is None:
        periodic_input = periodic

    if kind == "simple-pixel":
        tile_size = 1
    elif kind == "non-overlapping-tile":
        tile_size = fit_tile_size(tile_size, image.shape[1], image.shape[0])

    model = build_model(kind, image, tile_size=tile_size, basis=basis, periodic=periodic_input)
    width, height = dims
    return Wfc(
        model,
        math.ceil(width / tile_size),
        math.ceil(height / tile_size),
        periodic=periodic,
    )


def generate_with_retries(wfc, rng=None, retries=MAX_RETRIES, callback=None):
    success = wfc.generate(rng, callback=callback)
    attempt = 0
    while not success and attempt < retries:
        attempt += 1
        log.info(f"Generation failed, retrying {attempt} of {retries} times...")
        success = wfc.generate(rng, callback=callback)
    if not success:
        log.warning(f"Generation failed with {retries} retries.")
    return success
