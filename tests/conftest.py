import pandas as pd
import pytest


@pytest.fixture
def scenario_nodes() -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"time": 1, "category": 1, "size": 10},
            {"time": 1, "category": 2, "size": 5},
            {"time": 2, "category": 1, "size": 8},
            {"time": 2, "category": 2, "size": 7},
        ]
    )


@pytest.fixture
def scenario_links() -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"time1": 1, "category1": 1, "time2": 2, "category2": 1, "thickness": 8},
            {"time1": 1, "category1": 2, "time2": 2, "category2": 2, "thickness": 5},
            {"time1": 1, "category1": 2, "time2": 2, "category2": 1, "thickness": 2},
        ]
    )
