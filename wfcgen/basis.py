class Basis:
    """
    Neighbour geometry of the output grid.

    Direction `d` moves by `vector(d)`; `opposite(d)` is the direction that
    moves back.
    """

    def __init__(self, name, vectors, opposites, names=None):
        if len(vectors) != len(opposites):
            raise ValueError("every direction needs an opposite")
        self.name = name
        self.vectors = tuple(tuple(v) for v in vectors)
        self.opposites = tuple(opposites)
        self.names = tuple(names) if names is not None else tuple(
            str(d) for d in range(len(vectors))
        )

    @property
    def num_directions(self):
        return len(self.vectors)

    def vector(self, d):
        if not 0 <= d < len(self.vectors):
            raise ValueError(f"Unhandled direction {d} for {self.name} basis")
        return self.vectors[d]

    def opposite(self, d):
        if not 0 <= d < len(self.opposites):
            raise ValueError(f"Unhandled direction {d} for {self.name} basis")
        return self.opposites[d]

    def __repr__(self):
        return f"Basis({self.name!r}, {self.num_directions} directions)"


RIGHT, DOWN, LEFT, UP = range(4)

CARDINAL = Basis(
    "cardinal",
    [(1, 0), (0, 1), (-1, 0), (0, -1)],
    [LEFT, UP, RIGHT, DOWN],
    names=["right", "down", "left", "up"],
)

CARDINAL_WITH_DIAGONALS = Basis(
    "cardinal-with-diagonals",
    [(1, 0), (0, 1), (-1, 0), (0, -1), (1, 1), (1, -1), (-1, -1), (-1, 1)],
    [LEFT, UP, RIGHT, DOWN, 6, 7, 4, 5],
    names=["right", "down", "left", "up", "downright", "upright", "upleft", "downleft"],
)

BASES = {basis.name: basis for basis in [CARDINAL, CARDINAL_WITH_DIAGONALS]}
