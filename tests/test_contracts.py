import numpy as np
import pytest

from contracts import AcceptedFrameSet, CalibrationResult, TargetGeometry
from tests.synthetic import make_frame


def test_target_geometry_corner_count() -> None:
    geometry = TargetGeometry(corner_grid=(6, 9), square_size=0.03)
    assert geometry.corner_count == 54


@pytest.mark.parametrize(
    "grid, square",
    [((1, 9), 0.03), ((6, 1), 0.03), ((6, 9), 0.0), ((6, 9), -1.0)],
)
def test_target_geometry_rejects_degenerate_boards(grid, square) -> None:
    with pytest.raises(ValueError):
        TargetGeometry(corner_grid=grid, square_size=square)


def test_accepted_frame_set_is_bounded() -> None:
    frames = AcceptedFrameSet(target_count=2)
    frames.add(make_frame(0))
    frames.add(make_frame(1))

    assert frames.is_full
    assert [f.frame_index for f in frames] == [0, 1]
    with pytest.raises(ValueError):
        frames.add(make_frame(2))


def test_calibration_result_accessors() -> None:
    result = CalibrationResult(
        camera_matrix=np.array([[810.0, 0.0, 321.0], [0.0, 805.0, 239.0], [0.0, 0.0, 1.0]]),
        distortion_coefficients=(0.1, -0.2, 0.0, 0.0, 0.05),
        reprojection_error=0.3,
    )

    assert result.focal_length_px == (810.0, 805.0)
    assert result.principal_point_px == (321.0, 239.0)
