"""
Domain: service capabilities and the fixed category -> capability mapping.

Each material category maps to an installation capability (held by
professionals) and a supply capability (held by vendors). Stone & slabs are
sold installed, so that category has no separate vendor capability.

A lead's service type is either a capability tag ("tile_install") or a
category name ("tiles"). Category names expand to the capabilities of the
lead's audience.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional

from .errors import UnknownServiceType


class ServiceCapability(str, Enum):
    TILE_INSTALL = "tile_install"
    TILE_SUPPLY = "tile_supply"
    SLAB_INSTALL = "slab_install"
    VINYL_INSTALL = "vinyl_install"
    VINYL_SUPPLY = "vinyl_supply"
    HARDWOOD_INSTALL = "hardwood_install"
    HARDWOOD_SUPPLY = "hardwood_supply"
    CARPET_INSTALL = "carpet_install"
    CARPET_SUPPLY = "carpet_supply"
    HEATING_INSTALL = "heating_install"
    HEATING_SUPPLY = "heating_supply"


class MaterialCategory(str, Enum):
    TILES = "tiles"
    SLABS = "slabs"
    VINYL = "vinyl"
    HARDWOOD = "hardwood"
    CARPET = "carpet"
    HEATING = "heating"


class LeadAudience(str, Enum):
    """Who the customer wants to hear from."""

    PROFESSIONAL = "professional"
    VENDOR = "vendor"
    BOTH = "both"


# category -> (professional capability, vendor capability)
CATEGORY_CAPABILITIES: Dict[MaterialCategory, tuple[ServiceCapability, Optional[ServiceCapability]]] = {
    MaterialCategory.TILES: (ServiceCapability.TILE_INSTALL, ServiceCapability.TILE_SUPPLY),
    MaterialCategory.SLABS: (ServiceCapability.SLAB_INSTALL, None),
    MaterialCategory.VINYL: (ServiceCapability.VINYL_INSTALL, ServiceCapability.VINYL_SUPPLY),
    MaterialCategory.HARDWOOD: (ServiceCapability.HARDWOOD_INSTALL, ServiceCapability.HARDWOOD_SUPPLY),
    MaterialCategory.CARPET: (ServiceCapability.CARPET_INSTALL, ServiceCapability.CARPET_SUPPLY),
    MaterialCategory.HEATING: (ServiceCapability.HEATING_INSTALL, ServiceCapability.HEATING_SUPPLY),
}


def capabilities_for_service_type(
    service_type: str,
    audience: LeadAudience = LeadAudience.BOTH,
) -> FrozenSet[ServiceCapability]:
    """
    Resolve the capability set a lead requires.

    Raises:
        UnknownServiceType: service_type is neither a capability nor a category,
            or the category has no capability for the requested audience.
    """

    key = service_type.strip().lower()

    try:
        return frozenset({ServiceCapability(key)})
    except ValueError:
        pass

    try:
        category = MaterialCategory(key)
    except ValueError:
        raise UnknownServiceType(service_type) from None

    install, supply = CATEGORY_CAPABILITIES[category]
    caps: set[ServiceCapability] = set()
    if audience in (LeadAudience.PROFESSIONAL, LeadAudience.BOTH):
        caps.add(install)
    if audience in (LeadAudience.VENDOR, LeadAudience.BOTH) and supply is not None:
        caps.add(supply)

    if not caps:
        raise UnknownServiceType(f"{service_type} ({audience.value})")
    return frozenset(caps)
