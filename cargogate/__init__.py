"""
cargo-gate: fail-fast verification pipeline for cargo projects

Runs the fixed quality gates of a Rust project through an external toolchain:
- format check
- clippy with warnings denied
- documentation build and doc tests
- the full test suite

Distribution: Available as both Python library and CLI
"""

__version__ = "0.1.0"
__all__ = [
    "__version__",
]
