from __future__ import annotations

import pytest

from terrawave.wfc import TileCatalog
from tests.helpers import (
    make_land_water_catalog,
    make_shore_catalog,
    make_trivial_catalog,
    make_twisted_catalog,
)


@pytest.fixture
def land_water_catalog() -> TileCatalog:
    return make_land_water_catalog()


@pytest.fixture
def trivial_catalog() -> TileCatalog:
    return make_trivial_catalog()


@pytest.fixture
def shore_catalog() -> TileCatalog:
    return make_shore_catalog()


@pytest.fixture
def twisted_catalog() -> TileCatalog:
    return make_twisted_catalog()
