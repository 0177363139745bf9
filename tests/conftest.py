"""
tests/conftest.py

Shared fixtures: the bundled reference catalog and raw record factories.
"""

import pytest

from bng_units.catalog import DATA_DIR, ReferenceCatalog


FORMALLY_IDENTIFIED = "Formally identified in local strategy"
ECOLOGICALLY_DESIRABLE = "Location ecologically desirable but not in local strategy"
NOT_IN_STRATEGY = "Area/compensation not in local strategy/ no local strategy"

INSIDE_LPA = "Compensation inside LPA boundary or NCA of impact site"
NEIGHBOURING_LPA = "Compensation outside LPA or NCA of impact site, but in neighbouring LPA or NCA"
BEYOND_NEIGHBOURING_LPA = "Compensation outside LPA or NCA of impact site and neighbouring LPA or NCA"


@pytest.fixture(scope="session")
def catalog():
    return ReferenceCatalog.from_csv_dir(DATA_DIR)


@pytest.fixture
def habitat_baseline():
    """Raw on-site habitat baseline: 10 ha Modified grassland, 4 retained, 3 enhanced."""
    def make(**overrides):
        raw = {
            "broad_habitat": "Grassland",
            "habitat_type": "Modified grassland",
            "area": 10,
            "condition": "Moderate",
            "irreplaceable": False,
            "strategic_significance": NOT_IN_STRATEGY,
            "area_retained": 4,
            "area_enhanced": 3,
        }
        raw.update(overrides)
        return raw
    return make


@pytest.fixture
def off_site_habitat_baseline(habitat_baseline):
    def make(**overrides):
        raw = habitat_baseline(spatial_risk=NEIGHBOURING_LPA, off_site_reference="BGS-010203")
        raw.update(overrides)
        return raw
    return make


@pytest.fixture
def habitat_creation():
    """Raw on-site habitat creation: 1 ha Lowland mixed deciduous woodland in Good condition."""
    def make(**overrides):
        raw = {
            "broad_habitat": "Woodland and forest",
            "habitat_type": "Lowland mixed deciduous woodland",
            "area": 1,
            "condition": "Good",
            "strategic_significance": FORMALLY_IDENTIFIED,
        }
        raw.update(overrides)
        return raw
    return make


@pytest.fixture
def hedgerow_baseline():
    """Raw hedgerow baseline: 1 km Native hedgerow in Poor condition, 0.5 km enhanced."""
    def make(**overrides):
        raw = {
            "habitat_type": "Native hedgerow",
            "length": 1,
            "condition": "Poor",
            "strategic_significance": ECOLOGICALLY_DESIRABLE,
            "length_retained": 0,
            "length_enhanced": 0.5,
        }
        raw.update(overrides)
        return raw
    return make
