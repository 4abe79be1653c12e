"""Tests for Maven versions and ranges."""

import itertools

import pytest

from tmod.exceptions import UnsupportedComparisonError, VersionParseError
from tmod.version import (
    Combinator,
    FabricVersion,
    MavenVersion,
    MavenVersionRange,
)

TRICKY_VERSIONS = ["1", "1.0", "1.0.0", "1-sp", "1.0-foo", "1.0-mc1.20.1", "1.0-alpha"]


def v(text: str) -> MavenVersion:
    return MavenVersion.parse(text)


class TestMavenVersionParse:
    def test_items(self):
        assert v("1.20.1").items == (1, 20, 1)
        assert v("47.2.0-SNAPSHOT").items == (47, 2, 0, "snapshot")

    def test_splits_at_digit_letter_transitions(self):
        assert v("1.0rc1").items == (1, 0, "rc", 1)

    def test_leading_zeros_are_stripped(self):
        assert v("01.002").items == (1, 2)
        assert v("01.002") == v("1.2")

    def test_format_keeps_separators(self):
        assert str(v("1.0-beta")) == "1.0-beta"
        assert v(str(v("1.0-SNAPSHOT"))).items == v("1.0-SNAPSHOT").items

    @pytest.mark.parametrize("text", ["", "1.", "1..2", "1.0-", "-1", "1.0 beta", "1.0_2"])
    def test_rejects_malformed(self, text):
        with pytest.raises(VersionParseError):
            v(text)

    def test_error_reports_remainder(self):
        with pytest.raises(VersionParseError) as info:
            v("1.0_2")
        assert info.value.remainder == "_2"
        assert info.value.text == "1.0_2"


class TestMavenVersionOrdering:
    def test_trailing_zeros_are_equal(self):
        assert v("1.0") == v("1.0.0")
        assert v("1") == v("1.0.0")
        assert hash(v("1.0")) == hash(v("1.0.0"))

    def test_numeric_comparison(self):
        assert v("1.9") < v("1.10")
        assert v("1.20.1") > v("1.20")

    def test_qualifiers_sort_below_release(self):
        assert v("1.0-snapshot") < v("1.0")
        assert v("1.0-rc1") < v("1.0")
        assert v("1.0-alpha") < v("1.0-beta") < v("1.0-milestone") < v("1.0-rc")
        assert v("1.0-rc") < v("1.0-snapshot") < v("1.0") < v("1.0-sp")

    def test_qualifier_aliases(self):
        assert v("1.0-cr") == v("1.0-rc")
        assert v("1.0-ga") == v("1.0")
        assert v("1.0-final") == v("1.0-release")

    def test_unknown_qualifiers_sort_after_known(self):
        assert v("1.0-sp") < v("1.0-foo")
        assert v("1.0-bar") < v("1.0-foo")

    def test_numeric_items_above_textual(self):
        assert v("1.0.1") > v("1.0-sp")
        assert v("1.1") > v("1.a")

    def test_total_order_is_consistent(self):
        versions = [v(text) for text in ["1.0", "1.0-alpha", "0.9", "1.0.1", "1.0-sp", "1.0-rc2"]]
        ordered = sorted(versions)
        for left, right in zip(ordered, ordered[1:]):
            assert left <= right
            assert not right < left

    def test_order_is_transitive_across_padding(self):
        versions = [v(text) for text in TRICKY_VERSIONS]
        for left, right in itertools.product(versions, repeat=2):
            assert sum([left < right, left == right, left > right]) == 1
            if left == right:
                assert hash(left) == hash(right)
        for a, b, c in itertools.product(versions, repeat=3):
            if a <= b and b <= c:
                assert a <= c
            if a == b:
                assert (a < c) == (b < c)

    def test_zeros_before_qualifier_are_ignored(self):
        assert v("1.0-alpha") == v("1-alpha")
        assert v("1.0-alpha") < v("1") < v("1-sp") < v("1.0-foo") < v("1.0-mc1.20.1")
        assert v("1.0-sp") < v("1.0.1")

    def test_range_agrees_on_equal_versions(self):
        req = MavenVersionRange.parse("[1.0-mc1.20.1,)")
        assert req.satisfies(v("1")) == req.satisfies(v("1.0.0"))
        assert not req.satisfies(v("1.0.0"))
        assert req.satisfies(v("1.0.1"))

    def test_cross_family_comparison_raises(self):
        with pytest.raises(UnsupportedComparisonError):
            v("1.0") < FabricVersion.parse("1.0.0")
        with pytest.raises(TypeError):
            v("1.0") == FabricVersion.parse("1.0.0")


class TestMavenVersionRange:
    def test_or_semantics(self):
        req = MavenVersionRange.parse("(,1.0],[1.2,)")
        assert req.combinator is Combinator.ANY
        assert req.satisfies(v("0.5"))
        assert req.satisfies(v("1.0"))
        assert not req.satisfies(v("1.1"))
        assert req.satisfies(v("1.2"))
        assert req.satisfies(v("2.0"))

    def test_bare_version_is_soft_minimum(self):
        req = MavenVersionRange.parse("1.5")
        assert req.satisfies(v("1.5"))
        assert req.satisfies(v("3.0"))
        assert not req.satisfies(v("1.4"))

    def test_exact(self):
        req = MavenVersionRange.parse("[1.5]")
        assert req.satisfies(v("1.5.0"))
        assert not req.satisfies(v("1.5.1"))

    def test_interval_bounds(self):
        req = MavenVersionRange.parse("[1.20.1,1.21)")
        assert req.satisfies(v("1.20.1"))
        assert req.satisfies(v("1.20.4"))
        assert not req.satisfies(v("1.21"))
        assert not req.satisfies(v("1.20"))

        exclusive = MavenVersionRange.parse("(1.0,2.0]")
        assert not exclusive.satisfies(v("1.0"))
        assert exclusive.satisfies(v("2.0"))

    def test_whitespace_after_comma(self):
        req = MavenVersionRange.parse("[1.0, 2.0)")
        assert req.satisfies(v("1.5"))
        assert str(req) == "[1.0,2.0)"

    def test_forge_loader_range(self):
        assert MavenVersionRange.parse("[47,)").satisfies(v("47.2.0"))

    @pytest.mark.parametrize("text", ["", "(,)", "[,]", "[1.0", "(1.0,2.0", "[1.0,2.0)x", "1.0,"])
    def test_rejects_malformed(self, text):
        with pytest.raises(VersionParseError):
            MavenVersionRange.parse(text)

    def test_empty_interval_error_points_at_clause(self):
        with pytest.raises(VersionParseError) as info:
            MavenVersionRange.parse("1.0,(,)")
        assert info.value.remainder == "(,)"

    def test_rejects_other_family(self):
        with pytest.raises(UnsupportedComparisonError):
            MavenVersionRange.parse("[1.0,)").satisfies(FabricVersion.parse("1.0.0"))

    def test_equality_by_text(self):
        assert MavenVersionRange.parse("[1.0,2.0)") == MavenVersionRange.parse("[1.0, 2.0)")
