"""Shared fixtures."""

from __future__ import annotations

from typing import List

import numpy as np
import pytest

from configs.settings import OutputConfig
from contracts import TargetGeometry
from tests.synthetic import planted_views


@pytest.fixture
def geometry() -> TargetGeometry:
    return TargetGeometry(corner_grid=(6, 9), square_size=0.03)


@pytest.fixture
def views(geometry) -> List[np.ndarray]:
    return planted_views(geometry, 20)


@pytest.fixture
def output_config(tmp_path) -> OutputConfig:
    return OutputConfig(directory=str(tmp_path / "calibration"))
