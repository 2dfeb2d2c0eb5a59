"""
Variant types.

The variant decides whether compiled units also publish packaged (secondary)
outputs: only library variants do. Testing variants keep their state apart
from the main variant through a suffix on the unit name.
"""

from __future__ import annotations

from enum import StrEnum


class VariantType(StrEnum):
    APPLICATION = "application"
    INSTANTAPP = "instantapp"
    LIBRARY = "library"
    ATOM = "atom"
    ANDROID_TEST = "android_test"
    UNIT_TEST = "unit_test"

    @property
    def suffix(self) -> str:
        """Suffix appended to unit names, e.g. "AndroidTest"."""
        return _SUFFIXES.get(self, "")

    @property
    def publishes_packaged_sources(self) -> bool:
        return self is VariantType.LIBRARY

    def unit_name(self, base: str) -> str:
        """Name of the state directory for a unit of work, e.g. "compileUnitTest"."""
        return f"{base}{self.suffix}"


_SUFFIXES = {
    VariantType.ANDROID_TEST: "AndroidTest",
    VariantType.UNIT_TEST: "UnitTest",
}


__all__ = ["VariantType"]
