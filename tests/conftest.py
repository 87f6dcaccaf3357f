import pytest

from decay_source.config import DECAY_TABLE_PATH
from decay_source.nuclides import CalculationStep, NuclideId
from decay_source.providers import LocalDecayTable

CO60 = NuclideId(27, 60)
CS137 = NuclideId(55, 137)


@pytest.fixture(scope="session")
def local_table():
    return LocalDecayTable.from_csv(DECAY_TABLE_PATH)


@pytest.fixture
def co_cs_step():
    return CalculationStep(index=0, activities={CS137: 2.0e6, CO60: 1.0e6})
