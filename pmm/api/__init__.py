"""HTTP service exposing a single PMM pool."""
