"""Application wiring for the calibration pipeline."""
