# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for VersionNumber
"""

import itertools

import pytest

from src.vpm.errors import InvalidVersionFormat
from src.vpm.version import HEAD, MASTER, RELEASE, VersionNumber


class TestVersionParsing:
    """Test parsing of version strings"""

    def test_parse_triple(self):
        v = VersionNumber("1.2.3")
        assert v.components == (1, 2, 3)
        assert (v.major, v.minor, v.patch) == (1, 2, 3)
        assert str(v) == "1.2.3"

    def test_parse_classmethod(self):
        assert VersionNumber.parse("0.10.0") == VersionNumber("0.10.0")

    def test_parse_master(self):
        v = VersionNumber("~master")
        assert v == MASTER
        assert v.is_master
        assert str(v) == "~master"

    @pytest.mark.parametrize("text", ["", "1", "1.2", "1.2.3.4", "a.b.c", "1.2.-3", "v1.2.3", " 1.2.3", "1..3"])
    def test_invalid_format(self, text):
        with pytest.raises(InvalidVersionFormat) as exc_info:
            VersionNumber(text)
        assert exc_info.value.details["version"] == text

    def test_non_string_rejected(self):
        with pytest.raises(InvalidVersionFormat):
            VersionNumber(123)

    def test_immutable(self):
        v = VersionNumber("1.0.0")
        with pytest.raises(AttributeError):
            v.major = 2


class TestVersionOrdering:
    """Test comparison and ordering"""

    def test_lexicographic_order(self):
        assert VersionNumber("1.2.3") < VersionNumber("1.2.4")
        assert VersionNumber("1.10.0") > VersionNumber("1.9.9")
        assert VersionNumber("2.0.0") > VersionNumber("1.99.99")

    def test_sentinels(self):
        assert RELEASE == VersionNumber("0.0.0")
        assert HEAD == VersionNumber("9999.9999.9999")
        assert RELEASE < VersionNumber("0.0.1") < HEAD

    def test_master_equals_only_master(self):
        assert MASTER == VersionNumber("~master")
        assert MASTER != HEAD
        assert MASTER != VersionNumber("1.0.0")

    def test_master_orders_above_head(self):
        assert MASTER > HEAD

    def test_compare_is_antisymmetric(self):
        versions = [VersionNumber(v) for v in ["0.0.0", "0.0.1", "0.1.0", "1.0.0", "1.0.1", "2.3.4"]]
        for a, b in itertools.product(versions, repeat=2):
            assert a.compare(b) == -b.compare(a)
            assert (a.compare(b) == 0) == (a == b)

    def test_equal_to_string(self):
        assert VersionNumber("1.0.0") == "1.0.0"
        assert VersionNumber("1.0.0") != "not-a-version"

    def test_hashable(self):
        assert len({VersionNumber("1.0.0"), VersionNumber("1.0.0"), MASTER}) == 2

    def test_sorting(self):
        versions = [VersionNumber(v) for v in ["1.0.10", "1.0.2", "0.9.0"]]
        assert [str(v) for v in sorted(versions)] == ["0.9.0", "1.0.2", "1.0.10"]
