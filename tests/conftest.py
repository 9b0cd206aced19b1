import numpy as np
import pytest
from PySide6.QtCore import QCoreApplication

from hexterritory.model.graph import TileGraph
from hexterritory.model.tessellation import generate_hexasphere
from hexterritory.model.tiles import Tile, TileSet


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def square_grid(rows: int, cols: int, z: float = 100.0) -> TileSet:
    """
    Unit squares on the plane z=const, index = row * cols + col.

    Far from the Y axis, so no tile is polar; squares share corners with
    their 8 surrounding neighbours.
    """
    tiles = []
    for r in range(rows):
        for c in range(cols):
            boundary = np.array([
                [c, r, z], [c + 1, r, z], [c + 1, r + 1, z], [c, r + 1, z],
            ], dtype=np.float64)
            tiles.append(Tile(index=r * cols + c, boundary=boundary, center=[c + 0.5, r + 0.5, z]))
    return TileSet(tiles)


@pytest.fixture
def make_grid():
    def _make(rows: int, cols: int) -> TileGraph:
        return TileGraph.build(square_grid(rows, cols))
    return _make


@pytest.fixture
def chain_graph(make_grid) -> TileGraph:
    """Straight chain 0-1-2-3-4."""
    return make_grid(1, 5)


@pytest.fixture
def grid_graph(make_grid) -> TileGraph:
    """4 rows x 5 columns."""
    return make_grid(4, 5)


@pytest.fixture(scope="session")
def hexasphere() -> TileSet:
    return generate_hexasphere(radius=100.0, subdivisions=6)


@pytest.fixture(scope="session")
def sphere_graph(hexasphere) -> TileGraph:
    return TileGraph.build(hexasphere)


class SignalRecorder(list):
    """Collects every payload a Qt signal emits."""

    def __init__(self, signal):
        super().__init__()
        signal.connect(self.on_emit)

    def on_emit(self, *payload):
        self.append(payload[0] if len(payload) == 1 else payload)


@pytest.fixture
def record_signal():
    return SignalRecorder
