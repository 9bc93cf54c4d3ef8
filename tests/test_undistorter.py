import numpy as np

from calib.export import write_yaml
from contracts import CalibrationResult
from rectify.undistorter import Undistorter
from tests.synthetic import make_frame


def _result(distortion=(0.0, 0.0, 0.0, 0.0, 0.0)):
    return CalibrationResult(
        camera_matrix=np.array([[500.0, 0.0, 160.0], [0.0, 500.0, 120.0], [0.0, 0.0, 1.0]]),
        distortion_coefficients=distortion,
        reprojection_error=0.1,
        image_size=(320, 240),
    )


def test_zero_distortion_is_near_identity() -> None:
    image = np.tile(np.arange(320, dtype=np.uint8), (240, 1))

    undistorted = Undistorter.from_result(_result(), alpha=1.0).undistort(image)

    assert undistorted.shape == image.shape
    assert undistorted.dtype == image.dtype
    center = (slice(100, 140), slice(140, 180))
    assert np.abs(undistorted[center].astype(int) - image[center].astype(int)).max() <= 2


def test_rectify_returns_new_frame() -> None:
    frame = make_frame(3, np.full((240, 320), 90, dtype=np.uint8))

    rectified = Undistorter.from_result(_result((-0.2, 0.05, 0.0, 0.0, 0.0))).rectify(frame)

    assert rectified.image is not frame.image
    assert rectified.frame_index == 3
    assert rectified.image.shape == (240, 320)


def test_from_file(tmp_path) -> None:
    path = write_yaml(tmp_path / "calib.yaml", _result())
    undistorter = Undistorter.from_file(path)

    image = np.zeros((240, 320, 3), dtype=np.uint8)
    assert undistorter.undistort(image).shape == (240, 320, 3)
