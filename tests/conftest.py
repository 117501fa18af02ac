from __future__ import annotations

import pytest

from codestink.config import StinkConfig
from codestink.engine.scoring import StinkEngine


@pytest.fixture()
def config() -> StinkConfig:
    return StinkConfig()


@pytest.fixture()
def engine(config: StinkConfig) -> StinkEngine:
    return StinkEngine(config)
