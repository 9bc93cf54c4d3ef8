import pytest

from calib.quality import rate_calibration_quality


@pytest.mark.parametrize(
    "rms, images, rating",
    [
        (0.3, 20, "EXCELLENT"),
        (0.8, 15, "GOOD"),
        (0.3, 12, "ACCEPTABLE"),
        (1.5, 10, "ACCEPTABLE"),
        (2.5, 20, "POOR"),
        (0.3, 5, "POOR"),
    ],
)
def test_rating_thresholds(rms, images, rating) -> None:
    assert rate_calibration_quality(rms, images)["rating"] == rating


def test_poor_calibration_has_recommendations() -> None:
    quality = rate_calibration_quality(3.0, 8)

    assert quality["recommendations"]
    assert any("at least 10" in rec for rec in quality["recommendations"])
