"""Tests for the category taxonomy."""

from dataclasses import FrozenInstanceError

import pytest

from cafm.config import TicketCategory
from cafm.routing.domain import DEFAULT_ROLE, CategoryProfile, CategoryTaxonomy


def _profiles(**overrides):
    profiles = {
        category: CategoryProfile(role="AssetManager", keywords=(category.value.lower(),))
        for category in TicketCategory
        if category is not TicketCategory.GENERAL
    }
    profiles.update(overrides)
    return profiles


def test_default_taxonomy_declaration_order(taxonomy):
    assert taxonomy.categories() == [
        TicketCategory.PLUMBING,
        TicketCategory.ELECTRICAL,
        TicketCategory.CLEANING,
        TicketCategory.ASSET_MANAGEMENT,
        TicketCategory.HVAC,
        TicketCategory.SECURITY,
        TicketCategory.IT,
    ]
    assert len(taxonomy) == 7


def test_general_has_no_profile(taxonomy):
    assert taxonomy.profile_for(TicketCategory.GENERAL) is None
    assert taxonomy.role_for(TicketCategory.GENERAL) == DEFAULT_ROLE == "AssetManager"


@pytest.mark.parametrize("category,role", [
    (TicketCategory.PLUMBING, "Plumber"),
    (TicketCategory.ELECTRICAL, "Electrician"),
    (TicketCategory.CLEANING, "Cleaner"),
    (TicketCategory.ASSET_MANAGEMENT, "AssetManager"),
    (TicketCategory.HVAC, "AssetManager"),
    (TicketCategory.SECURITY, "AssetManager"),
    (TicketCategory.IT, "AssetManager"),
])
def test_role_for_category(taxonomy, category, role):
    assert taxonomy.role_for(category) == role


def test_categories_for_role(taxonomy):
    assert taxonomy.categories_for_role("Plumber") == [TicketCategory.PLUMBING]
    assert taxonomy.categories_for_role("AssetManager") == [
        TicketCategory.ASSET_MANAGEMENT,
        TicketCategory.HVAC,
        TicketCategory.SECURITY,
        TicketCategory.IT,
    ]
    assert taxonomy.categories_for_role("EndUser") == []


def test_keywords_are_lowercase_and_unique_per_category(taxonomy):
    for _, profile in taxonomy:
        assert len(set(profile.keywords)) == len(profile.keywords)
        assert all(k == k.lower() for k in profile.keywords)


def test_lock_and_monitor_are_shared(taxonomy):
    assert "lock" in taxonomy.profile_for(TicketCategory.ASSET_MANAGEMENT).keywords
    assert "lock" in taxonomy.profile_for(TicketCategory.SECURITY).keywords
    assert "monitor" in taxonomy.profile_for(TicketCategory.SECURITY).keywords
    assert "monitor" in taxonomy.profile_for(TicketCategory.IT).keywords


def test_profile_rejects_duplicate_keywords():
    with pytest.raises(ValueError, match="Duplicate"):
        CategoryProfile(role="Plumber", keywords=("leak", "leak"))


def test_profile_rejects_uppercase_keywords():
    with pytest.raises(ValueError, match="lowercase"):
        CategoryProfile(role="Plumber", keywords=("Leak",))


def test_taxonomy_rejects_general_profile():
    profiles = _profiles()
    profiles[TicketCategory.GENERAL] = CategoryProfile(role="AssetManager", keywords=("misc",))
    with pytest.raises(ValueError, match="General"):
        CategoryTaxonomy(profiles=profiles)


def test_taxonomy_rejects_missing_category():
    profiles = _profiles()
    del profiles[TicketCategory.IT]
    with pytest.raises(ValueError, match="IT"):
        CategoryTaxonomy(profiles=profiles)


def test_taxonomy_is_read_only(taxonomy):
    with pytest.raises(TypeError):
        taxonomy.profiles[TicketCategory.PLUMBING] = CategoryProfile(role="Cleaner", keywords=())
    with pytest.raises(FrozenInstanceError):
        taxonomy.default_role = "Admin"
