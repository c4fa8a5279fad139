"""Search packages: which searches a case runs for a given tier and package."""
from typing import Dict, List, Tuple

from app.workflows.types import (
    CRIMINAL, EDUCATION, EMPLOYMENT, MOTOR_VEHICLE, SSN_TRACE,
    TIER_FULL, TIER_STANDARD, TIERS
)

PACKAGES: Dict[str, Dict[str, Tuple[str, ...]]] = {
    'base': {
        TIER_STANDARD: (SSN_TRACE, CRIMINAL, EMPLOYMENT),
        TIER_FULL: (SSN_TRACE, CRIMINAL, EMPLOYMENT, EDUCATION),
    },
    'driver': {
        TIER_STANDARD: (SSN_TRACE, CRIMINAL, MOTOR_VEHICLE),
        TIER_FULL: (SSN_TRACE, CRIMINAL, EMPLOYMENT, MOTOR_VEHICLE),
    },
    'professional': {
        TIER_STANDARD: (SSN_TRACE, CRIMINAL, EDUCATION),
        TIER_FULL: (SSN_TRACE, CRIMINAL, EMPLOYMENT, EDUCATION, MOTOR_VEHICLE),
    },
}

# Identity and criminal history gate every package
ALWAYS_MANDATORY = (SSN_TRACE, CRIMINAL)

PACKAGE_MANDATORY: Dict[str, Tuple[str, ...]] = {
    'driver': (MOTOR_VEHICLE,),
}


def validate_package(tier: str, package: str) -> None:
    """Raise ValueError if tier/package is not catalogued"""
    if tier not in TIERS:
        raise ValueError(f"Unknown tier: {tier}")
    if package not in PACKAGES:
        raise ValueError(f"Unknown package: {package}")


def searches_for(tier: str, package: str) -> List[str]:
    """Ordered search kinds for a tier and package"""
    validate_package(tier, package)
    return list(PACKAGES[package][tier])


def is_mandatory(package: str, kind: str) -> bool:
    return kind in ALWAYS_MANDATORY or kind in PACKAGE_MANDATORY.get(package, ())
