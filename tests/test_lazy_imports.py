"""Tests for roost.__init__: lazy import registry covers all public names."""

import pytest

import roost


@pytest.mark.parametrize("name", roost.__all__)
def test_all_names_resolve(name: str) -> None:
    """Every name in __all__ must resolve via __getattr__ without error."""
    assert getattr(roost, name) is not None, f"roost.{name} resolved to None"


def test_registry_matches_all() -> None:
    assert set(roost.__all__) == set(roost._LAZY_IMPORTS)


def test_unknown_name_raises_attribute_error() -> None:
    with pytest.raises(AttributeError, match="no attribute"):
        roost.__getattr__("ThisDoesNotExist")
