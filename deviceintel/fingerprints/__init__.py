"""Screen-geometry and GPU fingerprint tables."""
