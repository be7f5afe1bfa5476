import logging

import numpy as np

from wfcgen.basis import CARDINAL

log = logging.getLogger(__name__)


class WfcError(RuntimeError):
    pass


class ModelError(WfcError):
    """The symbol alphabet can't be used by the solver."""


class Model:
    """
    Symbol alphabet learned from a source image.

    weights[t]       prior mass of symbol t
    payloads[t]      (tile_size, tile_size, 4) RGBA block drawn for symbol t
    propagator[t][d] symbols allowed as t's neighbour in direction d
    """

    def __init__(self, weights, payloads, propagator, basis=CARDINAL, tile_size=1, keys=None):
        self.weights = np.asarray(weights, dtype=np.float64)
        if self.weights.ndim != 1 or len(self.weights) == 0:
            raise ModelError("source yields no symbols")

        self.payloads = np.asarray(payloads, dtype=np.uint8)
        if len(self.payloads) != len(self.weights):
            raise ModelError(
                f"{len(self.payloads)} payloads for {len(self.weights)} symbols"
            )

        if len(propagator) != len(self.weights):
            raise ModelError(
                f"propagator has {len(propagator)} entries for {len(self.weights)} symbols"
            )
        for t, dirs in enumerate(propagator):
            if len(dirs) != basis.num_directions:
                raise ModelError(
                    f"symbol {t} has {len(dirs)} directions, basis has {basis.num_directions}"
                )

        # propagation decrements each allowed neighbour once, so entries must be unique
        self.propagator = [
            [list(dict.fromkeys(int(n) for n in allowed)) for allowed in dirs]
            for dirs in propagator
        ]
        self.basis = basis
        self.tile_size = tile_size
        self.keys = keys

    @property
    def num_symbols(self):
        return len(self.weights)

    def __repr__(self):
        return (
            f"Model({self.num_symbols} symbols, tile_size={self.tile_size}, "
            f"basis={self.basis.name!r})"
        )


class Tileset:
    """Accumulates distinct symbols, their counts and observed adjacencies."""

    def __init__(self, basis=CARDINAL):
        self.basis = basis
        self.ids = {}
        self.keys = []
        self.payloads = []
        self.counts = []
        self.propagator = []

    def add(self, key, payload):
        tile = self.ids.get(key)
        if tile is None:
            tile = len(self.keys)
            self.ids[key] = tile
            self.keys.append(key)
            self.payloads.append(payload)
            self.counts.append(0)
            self.propagator.append([[] for _ in range(self.basis.num_directions)])
        return tile

    def connect(self, frm, to, dirs):
        for d in dirs:
            allowed = self.propagator[frm][d]
            if to not in allowed:
                allowed.append(to)

    def num_tiles(self):
        return len(self.keys)

    def build(self, num_positions, tile_size=1):
        if self.num_tiles() == 0:
            raise ModelError("source yields no symbols")
        weights = np.array(self.counts, dtype=np.float64) / num_positions
        return Model(
            weights,
            np.array(self.payloads, dtype=np.uint8),
            self.propagator,
            basis=self.basis,
            tile_size=tile_size,
            keys=list(self.keys),
        )


def as_rgba(image):
    image = np.asarray(image, dtype=np.uint8)
    if image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(f"expected an (height, width, 4) RGBA array, got {image.shape}")
    return image


def _scan(image, tile_size, step, basis, periodic):
    height, width = image.shape[:2]

    # Blocks always read past the source edge modulo its size.
    if tile_size > 1 and height > 0 and width > 0:
        image = np.pad(
            image, ((0, tile_size - 1), (0, tile_size - 1), (0, 0)), mode="wrap"
        )

    tileset = Tileset(basis)
    grid = []
    for y in range(0, height, step):
        row = []
        for x in range(0, width, step):
            block = image[y : y + tile_size, x : x + tile_size]
            tile = tileset.add(block.tobytes(), block.copy())
            tileset.counts[tile] += 1
            row.append(tile)
        grid.append(row)

    grid_h = len(grid)
    grid_w = len(grid[0]) if grid_h else 0

    for gy in range(grid_h):
        for gx in range(grid_w):
            tile = grid[gy][gx]
            for d in range(basis.num_directions):
                dx, dy = basis.vector(d)
                ny = gy + dy
                nx = gx + dx
                if not (0 <= ny < grid_h and 0 <= nx < grid_w):
                    if not periodic:
                        continue
                    ny %= grid_h
                    nx %= grid_w
                tileset.connect(tile, grid[ny][nx], [d])

    return tileset.build(grid_h * grid_w, tile_size)


def from_pixels(image, basis=CARDINAL, periodic=False):
    """One symbol per distinct RGBA colour."""
    image = as_rgba(image)
    model = _scan(image, 1, 1, basis, periodic)
    log.debug(f"[model] simple-pixel: {model.num_symbols} colours from {image.shape[:2]}")
    return model


def from_tiles(image, tile_size, basis=CARDINAL, periodic=False):
    """One symbol per distinct tile of a non-overlapping tile_size grid."""
    image = as_rgba(image)
    height, width = image.shape[:2]
    if tile_size < 1 or height % tile_size != 0 or width % tile_size != 0:
        raise ValueError(
            f"tile size {tile_size} does not divide source dimensions {width}x{height}"
        )
    model = _scan(image, tile_size, tile_size, basis, periodic)
    log.debug(
        f"[model] non-overlapping-tile: {model.num_symbols} tiles of {tile_size}x{tile_size}"
    )
    return model


def from_overlapping_tiles(image, tile_size, basis=CARDINAL, periodic=False):
    """One symbol per distinct tile_size block anchored at every source pixel."""
    if tile_size < 1:
        raise ValueError(f"invalid tile size {tile_size}")
    image = as_rgba(image)
    model = _scan(image, tile_size, 1, basis, periodic)
    log.debug(
        f"[model] overlapping-tile: {model.num_symbols} tiles of {tile_size}x{tile_size}"
    )
    return model


MODEL_KINDS = ["simple-pixel", "overlapping-tile", "non-overlapping-tile"]


def build_model(kind, image, tile_size=1, basis=CARDINAL, periodic=False):
    if kind == "simple-pixel":
        return from_pixels(image, basis=basis, periodic=periodic)
    if kind == "overlapping-tile":
        return from_overlapping_tiles(image, tile_size, basis=basis, periodic=periodic)
    if kind == "non-overlapping-tile":
        return from_tiles(image, tile_size, basis=basis, periodic=periodic)
    raise ValueError(f"unknown model kind {kind!r}, expected one of {MODEL_KINDS}")
