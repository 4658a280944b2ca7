"""cargo-gate command-line interface."""
