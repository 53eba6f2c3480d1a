"""
Coordinate model for the Hexfront map core.
Implements cube/axial hex math and the rectangular grid variant behind a single
MapProfile adapter, so every other module works with one coordinate type.

Hex layout is flat-topped. Rectangular grids reuse Hex as an (x, y) pair
stored in (q, r).
"""

import math
from dataclasses import dataclass
from typing import Iterator, List, Tuple


SQRT3 = math.sqrt(3.0)

HEX = 'hex'
RECT = 'rect'
COORDINATE_SYSTEMS = (HEX, RECT)

RECTANGLE = 'rectangle'
HEXAGON = 'hexagon'
MAP_SHAPES = (RECTANGLE, HEXAGON)


class CoordinateError(ValueError):
    """Raised when a coordinate breaks the cube invariant q + r + s == 0."""
    pass


@dataclass(frozen=True, order=True)
class Hex:
    """Immutable cube coordinate stored in axial form; s is derived."""
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    @classmethod
    def from_cube(cls, q: int, r: int, s: int) -> 'Hex':
        """Build a Hex from a full cube triple, enforcing q + r + s == 0."""
        if q + r + s != 0:
            raise CoordinateError(f"Cube coordinate ({q}, {r}, {s}) does not sum to zero")
        return cls(q, r)

    def __add__(self, other: 'Hex') -> 'Hex':
        return Hex(self.q + other.q, self.r + other.r)

    def __sub__(self, other: 'Hex') -> 'Hex':
        return Hex(self.q - other.q, self.r - other.r)

    def to_tuple(self) -> Tuple[int, int]:
        return (self.q, self.r)

    def __repr__(self):
        return f"Hex({self.q}, {self.r})"


# Fixed direction orders; iteration and tie-breaking elsewhere depend on them.
# Hex: E, NE, NW, W, SW, SE
HEX_DIRECTIONS = [
    Hex(1, 0), Hex(1, -1), Hex(0, -1),
    Hex(-1, 0), Hex(-1, 1), Hex(0, 1)
]
# Rect: N, E, S, W
RECT_DIRECTIONS = [Hex(0, -1), Hex(1, 0), Hex(0, 1), Hex(-1, 0)]


def hex_round(qf: float, rf: float, sf: float) -> Hex:
    """
    Round fractional cube coordinates to the nearest valid Hex.

    Each component is rounded independently, then the one with the largest
    rounding error is recomputed from the other two so the zero-sum invariant
    holds exactly. Ties prefer correcting q, then r, otherwise s.

    Args:
        qf, rf, sf: Fractional cube coordinates

    Returns:
        Nearest Hex
    """
    q = round(qf)
    r = round(rf)
    s = round(sf)

    q_diff = abs(q - qf)
    r_diff = abs(r - rf)
    s_diff = abs(s - sf)

    if q_diff > r_diff and q_diff > s_diff:
        q = -r - s
    elif r_diff > s_diff:
        r = -q - s
    else:
        s = -q - r

    return Hex.from_cube(int(q), int(r), int(s))


def hex_distance(a: Hex, b: Hex) -> int:
    """Minimum number of single-step moves between two hexes."""
    d = a - b
    return (abs(d.q) + abs(d.r) + abs(d.s)) // 2


def manhattan_distance(a: Hex, b: Hex) -> int:
    return abs(a.q - b.q) + abs(a.r - b.r)


def hex_neighbors(coord: Hex) -> List[Hex]:
    """Return the 6 adjacent hexes in HEX_DIRECTIONS order."""
    return [coord + d for d in HEX_DIRECTIONS]


def hex_linedraw(start: Hex, end: Hex) -> List[Hex]:
    """
    Return the hexes on a straight line from start to end, both inclusive.

    Endpoints are nudged by a small epsilon so that lines running exactly
    along hex edges round consistently to one side.
    """
    n = hex_distance(start, end)
    if n == 0:
        return [start]

    eps = 1e-6
    results = []
    for i in range(n + 1):
        t = i / n
        qf = start.q + eps + (end.q - start.q) * t
        rf = start.r + eps + (end.r - start.r) * t
        sf = start.s - 2 * eps + (end.s - start.s) * t
        results.append(hex_round(qf, rf, sf))
    return results


@dataclass(frozen=True)
class MapProfile:
    """
    Coordinate adapter describing how a map is laid out.

    Attributes:
        coordinate_system: 'hex' (cube coordinates) or 'rect' (x/y grid)
        shape: 'rectangle' (q in [0, width), r in [0, height)) or 'hexagon'
        tile_size: Pixel/world size of one tile
    """
    coordinate_system: str = HEX
    shape: str = RECTANGLE
    tile_size: float = 1.0

    def __post_init__(self):
        if self.coordinate_system not in COORDINATE_SYSTEMS:
            raise ValueError(f"Unknown coordinate system: {self.coordinate_system}")
        if self.shape not in MAP_SHAPES:
            raise ValueError(f"Unknown map shape: {self.shape}")
        if self.shape == HEXAGON and self.coordinate_system != HEX:
            raise ValueError("Hexagon-shaped maps require the hex coordinate system")

    @property
    def is_hex(self) -> bool:
        return self.coordinate_system == HEX

    @property
    def neighbor_count(self) -> int:
        return 6 if self.is_hex else 4

    @property
    def directions(self) -> List[Hex]:
        return HEX_DIRECTIONS if self.is_hex else RECT_DIRECTIONS

    def to_pixel(self, coord: Hex) -> Tuple[float, float]:
        """Convert a coordinate to world-space (x, z)."""
        size = self.tile_size
        if self.is_hex:
            x = size * (3.0 / 2.0 * coord.q)
            z = size * (SQRT3 / 2.0 * coord.q + SQRT3 * coord.r)
            return (x, z)
        return (size * coord.q, size * coord.r)

    def from_pixel(self, x: float, z: float) -> Hex:
        """Convert a world-space (x, z) point back to the coordinate containing it."""
        size = self.tile_size
        if self.is_hex:
            qf = (2.0 / 3.0 * x) / size
            rf = (-1.0 / 3.0 * x + SQRT3 / 3.0 * z) / size
            return hex_round(qf, rf, -qf - rf)
        # Half-up rounding so grid-cell edges resolve the same way every time
        return Hex(math.floor(x / size + 0.5), math.floor(z / size + 0.5))

    def distance(self, a: Hex, b: Hex) -> int:
        if self.is_hex:
            return hex_distance(a, b)
        return manhattan_distance(a, b)

    def neighbors(self, coord: Hex) -> List[Hex]:
        return [coord + d for d in self.directions]

    def is_adjacent(self, a: Hex, b: Hex) -> bool:
        return self.distance(a, b) == 1

    def line(self, a: Hex, b: Hex) -> List[Hex]:
        """Coordinates on a straight line from a to b, both inclusive."""
        if self.is_hex:
            return hex_linedraw(a, b)
        n = max(abs(b.q - a.q), abs(b.r - a.r))
        if n == 0:
            return [a]
        return [
            Hex(math.floor(a.q + (b.q - a.q) * i / n + 0.5), math.floor(a.r + (b.r - a.r) * i / n + 0.5))
            for i in range(n + 1)
        ]

    def coords_in_range(self, center: Hex, radius: int) -> Iterator[Hex]:
        """
        Yield every coordinate within radius of center (a filled diamond).

        Hex grids clip dr per dq so the result is the hex "circle"; rectangular
        grids clip dy per dx to form a Manhattan diamond.
        """
        if radius < 0:
            return
        for dq in range(-radius, radius + 1):
            if self.is_hex:
                r_lo = max(-radius, -dq - radius)
                r_hi = min(radius, -dq + radius)
            else:
                r_lo = -(radius - abs(dq))
                r_hi = radius - abs(dq)
            for dr in range(r_lo, r_hi + 1):
                yield Hex(center.q + dq, center.r + dr)

    def region(self, width: int, height: int) -> List[Hex]:
        """
        Enumerate the coordinates of a width x height map of this profile's shape.

        Args:
            width: Number of columns (q extent)
            height: Number of rows (r extent)

        Returns:
            Coordinates in q-major order
        """
        if self.shape == RECTANGLE:
            return [Hex(q, r) for q in range(width) for r in range(height)]

        radius = max(0, min(width, height) // 2)
        center = Hex(radius, radius)
        return list(self.coords_in_range(center, radius))


DEFAULT_PROFILE = MapProfile()
