"""
cargo-gate Feature Selector

Chooses the cargo feature flags shared by the lint and test stages.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from cargogate.logging import get_logger
from cargogate.version import MIN_RUST_VERSION, Version, VersionGate

logger = get_logger(__name__)


class FeaturePolicy(str, Enum):
    """Which rule produced a FeatureSet."""
    OVERRIDE = "override"
    ALL = "all"
    DEFAULT = "default"


@dataclass(frozen=True)
class FeatureSet:
    """Ordered cargo flag tokens plus the policy that produced them."""
    policy: FeaturePolicy
    flags: Tuple[str, ...] = ()

    @classmethod
    def override(cls, features: str) -> "FeatureSet":
        return cls(FeaturePolicy.OVERRIDE, ("--no-default-features", f"--features={features}"))

    @classmethod
    def all_features(cls) -> "FeatureSet":
        return cls(FeaturePolicy.ALL, ("--all-features",))

    @classmethod
    def default(cls) -> "FeatureSet":
        return cls(FeaturePolicy.DEFAULT)

    def __iter__(self):
        return iter(self.flags)

    def __len__(self) -> int:
        return len(self.flags)


def select_features(
    override: Optional[str],
    gate: VersionGate,
    minimum: Version = MIN_RUST_VERSION,
) -> FeatureSet:
    """
    Resolve the feature set for a run.

    Precedence:
    1. override is not None (an empty string counts): exactly that list,
       default features off. The version gate is not consulted.
    2. the toolchain is at least `minimum`: all features.
    3. otherwise: default features only.
    """
    if override is not None:
        features = FeatureSet.override(override)
    elif gate.is_at_least(minimum):
        features = FeatureSet.all_features()
    else:
        features = FeatureSet.default()

    logger.info(
        "Selected features",
        extra={"policy": features.policy.value, "flags": list(features.flags)},
    )
    return features
