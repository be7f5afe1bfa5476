import logging
import random
from enum import Enum

import numpy as np

from wfcgen.model import ModelError, WfcError
from wfcgen.sampler import sample_discrete

log = logging.getLogger(__name__)


class GenerationIncompleteError(WfcError):
    """Output was requested before a successful generation."""


class IterationResult(Enum):
    SUCCESS = 0
    FAILURE = 1
    ONGOING = 2


class Wfc:
    """
    Constraint-propagation solver over a width x height grid of cells.

    Cells are flat, row-major: index = y * width + x. Every cell keeps a
    boolean domain over the model's symbols (`wave`), a per-symbol,
    per-direction count of neighbour symbols still supporting it
    (`compatible`) and an entropy used to pick the next cell to collapse.

    Nothing heavy is allocated until `initialize()`, which `generate()` and
    `iterate()` call on first use. Allocations are reused by `clear()` on
    every attempt.
    """

    def __init__(self, model, width, height, periodic=False, basis=None):
        if width < 1 or height < 1:
            raise ValueError(f"invalid output size {width}x{height}")
        if basis is None:
            basis = model.basis
        if basis.num_directions != model.basis.num_directions:
            raise ValueError(
                f"{basis.name} basis has {basis.num_directions} directions, "
                f"model was built with {model.basis.num_directions}"
            )

        self.model = model
        self.width = width
        self.height = height
        self.num_cells = width * height
        self.periodic = periodic
        self.basis = basis

        self.wave = None
        self.compatible = None
        self.entropies = None
        self.observed = None
        self._stack = []
        self._generation_complete = False

    def initialize(self):
        log.debug("[initialize] allocating wave")
        num_symbols = self.model.num_symbols
        num_directions = self.basis.num_directions
        weights = self.model.weights

        with np.errstate(divide="ignore", invalid="ignore"):
            weight_log_weights = weights * np.log(weights)
        if np.any(weights <= 0) or not np.all(np.isfinite(weight_log_weights)):
            raise ModelError(f"symbol weights must be positive and finite, got {weights}")

        self.weight_log_weights = weight_log_weights
        self.starting_entropy = -weight_log_weights.sum()

        self._propagator = [
            [np.array(allowed, dtype=np.intp) for allowed in dirs]
            for dirs in self.model.propagator
        ]

        # incoming[t, d]: symbols that allow t as their neighbour in direction d,
        # i.e. possible supporters of t one step against d.
        self._incoming = np.zeros((num_symbols, num_directions), dtype=np.int32)
        for dirs in self.model.propagator:
            for d in range(num_directions):
                for t in dirs[d]:
                    self._incoming[t, d] += 1

        xs = np.arange(self.num_cells) % self.width
        ys = np.arange(self.num_cells) // self.width
        neighbours = np.empty((self.num_cells, num_directions), dtype=np.intp)
        for d in range(num_directions):
            dx, dy = self.basis.vector(d)
            x2 = xs + dx
            y2 = ys + dy
            if self.periodic:
                neighbours[:, d] = (y2 % self.height) * self.width + x2 % self.width
            else:
                inside = (x2 >= 0) & (x2 < self.width) & (y2 >= 0) & (y2 < self.height)
                neighbours[:, d] = np.where(inside, y2 * self.width + x2, -1)
        self._neighbours = neighbours.tolist()

        # (cell, symbol) pairs with a neighbour that no symbol can support them from
        self._unsupported = []
        unsupported_symbols = [
            np.flatnonzero(self._incoming[:, d] == 0).tolist() for d in range(num_directions)
        ]
        for i, cell in enumerate(self._neighbours):
            for d in range(num_directions):
                if cell[self.basis.opposite(d)] < 0:
                    continue
                for t in unsupported_symbols[d]:
                    self._unsupported.append((i, t))

        self.wave = np.ones((self.num_cells, num_symbols), dtype=bool)
        self.compatible = np.zeros((self.num_cells, num_symbols, num_directions), dtype=np.int32)
        self.entropies = np.zeros(self.num_cells, dtype=np.float64)
        self._stack = []

    def clear(self):
        if self.wave is None:
            self.initialize()
        self.wave[:] = True
        self.compatible[:] = self._incoming
        self.entropies[:] = self.starting_entropy
        self._stack.clear()
        self.observed = None
        self._generation_complete = False

        for i, t in self._unsupported:
            self.ban(i, t)
        self.propagate()
        log.debug(f"[clear] done, {len(self._unsupported)} unsupported placements banned")

    def generate(self, rng=None, callback=None):
        """
        Run a full attempt from a cleared wave. Returns True on success and
        False on contradiction. `callback(wfc)` runs after every step that
        leaves the attempt ongoing.
        """
        if self.wave is None:
            self.initialize()
        rng = rng or random.random

        log.debug("[generate] clearing")
        self.clear()
        i = 0
        while True:
            result = self.iterate(rng)
            if result is not IterationResult.ONGOING:
                log.debug(f"[generate] completed with result {result.name} after {i} iterations")
                return result is IterationResult.SUCCESS
            if callback is not None:
                callback(self)
            i += 1

    def iterate(self, rng=None):
        if self.wave is None:
            self.clear()
        rng = rng or random.random

        result = self.observe(rng)
        if result is not IterationResult.ONGOING:
            self._generation_complete = result is IterationResult.SUCCESS
            return result
        self.propagate()
        return IterationResult.ONGOING

    def is_generation_complete(self):
        return self._generation_complete

    def observe(self, rng):
        """
        Collapse the undecided cell with the lowest entropy to a single
        symbol drawn from its remaining weighted distribution.
        """
        counts = self.wave.sum(axis=1)
        if not counts.all():
            log.debug("[observe] found cell with 0 choices")
            return IterationResult.FAILURE

        min_entropy = np.inf
        argmin = -1
        for i in np.flatnonzero(counts > 1).tolist():
            entropy = self.entropies[i]
            if entropy <= min_entropy:
                noise = 1e-6 * rng()
                if entropy + noise < min_entropy:
                    min_entropy = entropy + noise
                    argmin = i

        if argmin == -1:
            self.observed = self.wave.argmax(axis=1)
            return IterationResult.SUCCESS

        distribution = np.where(self.wave[argmin], self.model.weights, 0.0)
        chosen = sample_discrete(distribution.tolist(), rng())
        for t in np.flatnonzero(self.wave[argmin]).tolist():
            if t != chosen:
                self.ban(argmin, t)
        return IterationResult.ONGOING

    def propagate(self):
        stack = self._stack
        while stack:
            i1, t1 = stack.pop()
            for d, i2 in enumerate(self._neighbours[i1]):
                if i2 < 0:
                    continue
                targets = self._propagator[t1][d]
                if len(targets) == 0:
                    continue
                compatible = self.compatible[i2, :, d]
                compatible[targets] -= 1
                for t2 in targets[compatible[targets] <= 0].tolist():
                    self.ban(i2, t2)

    def ban(self, i, t):
        wave = self.wave[i]
        if not wave[t]:
            return
        wave[t] = False
        self._stack.append((i, t))
        self.entropies[i] = -self.weight_log_weights[wave].sum()

    def count_possibilities(self):
        if self.wave is None:
            return 0
        return int(self.wave.sum())

    def collapse_status(self):
        if self.wave is None:
            return np.zeros((self.height, self.width), dtype=np.intp)
        return self.wave.sum(axis=1).reshape(self.height, self.width)

    def values(self):
        if not self._generation_complete:
            raise GenerationIncompleteError("generation has not completed successfully")
        return self.observed.reshape(self.height, self.width)

    def _blocks_to_image(self, blocks):
        n = self.model.tile_size
        blocks = blocks.reshape(self.height, self.width, n, n, 4)
        return blocks.swapaxes(1, 2).reshape(self.height * n, self.width * n, 4)

    def generated_image(self):
        return self._blocks_to_image(self.model.payloads[self.values()])

    def put_generated_data(self, output):
        """Write the generated RGBA pixels into `output`, any buffer of matching size."""
        image = self.generated_image()
        if output.size != image.size:
            raise ValueError(f"output buffer holds {output.size} values, need {image.size}")
        output[...] = image.reshape(output.shape)

    def partial_image(self):
        """Render each cell as the weighted mean of the payloads it still allows."""
        if self.wave is None:
            self.clear()
        weights = self.wave * self.model.weights
        totals = weights.sum(axis=1, keepdims=True)
        weights = np.divide(weights, totals, out=np.zeros_like(weights), where=totals > 0)
        blocks = np.tensordot(weights, self.model.payloads.astype(np.float64), axes=1)
        return np.rint(self._blocks_to_image(blocks)).astype(np.uint8)
