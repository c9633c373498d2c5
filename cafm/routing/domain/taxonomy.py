"""
Category Taxonomy
=================

Static, read-only mapping of service categories to the role responsible for
them and the keywords that identify them.

The taxonomy is literal data compiled into the service. It is built once at
process start and handed to the services that need it.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple

from cafm.config import TicketCategory, UserRole

DEFAULT_ROLE: str = UserRole.ASSET_MANAGER.value


@dataclass(frozen=True)
class CategoryProfile:
    """Role and ordered keyword set for one category."""
    role: str
    keywords: Tuple[str, ...]

    def __post_init__(self):
        """Validate keyword normalisation."""
        if len(set(self.keywords)) != len(self.keywords):
            raise ValueError(f"Duplicate keywords in profile for role {self.role}")
        for keyword in self.keywords:
            if keyword != keyword.lower():
                raise ValueError(f"Keyword '{keyword}' must be lowercase")


@dataclass(frozen=True)
class CategoryTaxonomy:
    """
    Immutable category table.

    Iteration follows declaration order, which is also the tie-break order
    used by classification. Every category except General has exactly one
    profile; General is the fallback and has none.
    """
    profiles: Mapping[TicketCategory, CategoryProfile]
    default_role: str = DEFAULT_ROLE
    _order: Tuple[TicketCategory, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Freeze the table and check it covers the closed category set."""
        if TicketCategory.GENERAL in self.profiles:
            raise ValueError("General is the fallback category and must not have a profile")

        missing = [c for c in TicketCategory if c is not TicketCategory.GENERAL and c not in self.profiles]
        if missing:
            raise ValueError(f"Categories without a profile: {[c.value for c in missing]}")

        object.__setattr__(self, "profiles", MappingProxyType(dict(self.profiles)))
        object.__setattr__(self, "_order", tuple(self.profiles))

    def __iter__(self) -> Iterator[Tuple[TicketCategory, CategoryProfile]]:
        for category in self._order:
            yield category, self.profiles[category]

    def __len__(self) -> int:
        return len(self._order)

    def categories(self) -> List[TicketCategory]:
        """Categories with a profile, in declaration order."""
        return list(self._order)

    def profile_for(self, category: TicketCategory) -> Optional[CategoryProfile]:
        return self.profiles.get(category)

    def role_for(self, category: TicketCategory) -> str:
        """Responsible role, or the default role for General/unknown."""
        profile = self.profiles.get(category)
        return profile.role if profile else self.default_role

    def categories_for_role(self, role: str) -> List[TicketCategory]:
        """Categories routed to ``role``, in declaration order."""
        return [category for category, profile in self if profile.role == role]


def build_default_taxonomy() -> CategoryTaxonomy:
    """Build the facility-management taxonomy."""
    return CategoryTaxonomy(profiles={
        TicketCategory.PLUMBING: CategoryProfile(
            role=UserRole.PLUMBER.value,
            keywords=(
                "water", "leak", "pipe", "drain", "faucet", "toilet", "sink", "plumbing",
                "flooding", "burst", "clog", "blockage", "sewage", "tap", "valve",
                "pressure", "flow", "drip", "overflow", "backup",
            ),
        ),
        TicketCategory.ELECTRICAL: CategoryProfile(
            role=UserRole.ELECTRICIAN.value,
            keywords=(
                "power", "electric", "electrical", "socket", "outlet", "switch", "light",
                "lighting", "bulb", "wire", "wiring", "circuit", "breaker", "fuse",
                "voltage", "current", "shock", "sparks", "blackout", "outage",
            ),
        ),
        TicketCategory.CLEANING: CategoryProfile(
            role=UserRole.CLEANER.value,
            keywords=(
                "dirty", "clean", "cleaning", "garbage", "trash", "waste", "spill",
                "stain", "mess", "dust", "vacuum", "mop", "sanitize", "disinfect",
                "hygiene", "odor", "smell", "restroom", "bathroom", "janitor",
            ),
        ),
        TicketCategory.ASSET_MANAGEMENT: CategoryProfile(
            role=UserRole.ASSET_MANAGER.value,
            keywords=(
                "broken", "damaged", "repair", "replace", "equipment", "asset", "furniture",
                "desk", "chair", "table", "cabinet", "door", "window", "lock",
                "maintenance", "service", "inspection", "warranty", "inventory",
            ),
        ),
        # HVAC, Security and IT have no dedicated technician role yet
        TicketCategory.HVAC: CategoryProfile(
            role=UserRole.ASSET_MANAGER.value,
            keywords=(
                "hvac", "heating", "cooling", "temperature", "thermostat", "ac", "air conditioning",
                "ventilation", "fan", "duct", "filter", "hot", "cold", "climate",
                "humidity", "airflow", "compressor", "refrigerant",
            ),
        ),
        TicketCategory.SECURITY: CategoryProfile(
            role=UserRole.ASSET_MANAGER.value,
            keywords=(
                "security", "alarm", "camera", "access", "card", "badge", "lock",
                "key", "entry", "exit", "surveillance", "monitor", "breach",
                "unauthorized", "theft", "safety", "emergency",
            ),
        ),
        TicketCategory.IT: CategoryProfile(
            role=UserRole.ASSET_MANAGER.value,
            keywords=(
                "computer", "laptop", "monitor", "screen", "keyboard", "mouse",
                "network", "internet", "wifi", "printer", "software", "system",
                "server", "database", "email", "phone", "telephone",
            ),
        ),
    })
