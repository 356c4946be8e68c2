# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Version Range Constraints

A constraint is an interval over VersionNumber with one comparator per bound,
e.g. '>=1.0.0 <2.0.0'. Intersecting two constraints ("merge") is how
requirements from several issuers are combined; an empty intersection shows
up as an invalid constraint rather than an exception.
"""

from typing import Tuple, Union

from .errors import InvalidRangeExpression, InvalidVersionFormat
from .version import VersionNumber, RELEASE, HEAD, MASTER, MASTER_STRING

COMPARATORS = (">=", ">", "<=", "<")
_PREFIXES = COMPARATORS + ("==",)


def _compare(comparator: str, a: VersionNumber, b: VersionNumber) -> bool:
    """Evaluate 'a <comparator> b'."""
    if comparator == ">=":
        return a >= b
    if comparator == ">":
        return a > b
    if comparator == "<=":
        return a <= b
    if comparator == "<":
        return a < b
    raise ValueError(f"Unknown comparator: '{comparator}'")


def _is_strict(comparator: str, bound: VersionNumber) -> bool:
    """A comparator is strict when the bound itself does not satisfy it."""
    return not _compare(comparator, bound, bound)


def _split_comparator(expression: str, token: str) -> Tuple[str, str]:
    """Split '>=1.2.3' into ('>=', '1.2.3'); no prefix means '>='."""
    idx = 0
    while idx < len(token) and not token[idx].isdigit():
        idx += 1
    if idx == len(token):
        raise InvalidRangeExpression(expression, f"no version number in '{token}'")
    comparator = token[:idx] or ">="
    if comparator not in _PREFIXES:
        raise InvalidRangeExpression(expression, f"No/Unknown comparison specified: '{comparator}'")
    return comparator, token[idx:]


def _parse_version(expression: str, text: str) -> VersionNumber:
    try:
        return VersionNumber(text)
    except InvalidVersionFormat as e:
        raise InvalidRangeExpression(expression, e.message) from e


class RangeConstraint:
    """
    Immutable version interval: (cmp_low, low, cmp_high, high).

    Single-sided expressions are normalized on construction: '==v' becomes
    '>=v <=v', '>=v' gets an upper bound of '<=HEAD' and '<=v' a lower bound
    of '>=RELEASE'.
    """

    __slots__ = ("cmp_low", "low", "cmp_high", "high")

    def __init__(
        self,
        expression: Union[str, "RangeConstraint", None] = None,
        *,
        bounds: Tuple[str, VersionNumber, str, VersionNumber] = None
    ):
        if bounds is not None:
            cmp_low, low, cmp_high, high = bounds
            for comparator in (cmp_low, cmp_high):
                if comparator not in COMPARATORS:
                    raise ValueError(f"Unknown comparator: '{comparator}'")
        elif isinstance(expression, RangeConstraint):
            cmp_low, low, cmp_high, high = expression.bounds
        elif isinstance(expression, str):
            cmp_low, low, cmp_high, high = self._parse(expression)
        else:
            raise InvalidRangeExpression(str(expression), "expected a string")

        object.__setattr__(self, "cmp_low", cmp_low)
        object.__setattr__(self, "low", low)
        object.__setattr__(self, "cmp_high", cmp_high)
        object.__setattr__(self, "high", high)

    @staticmethod
    def _parse(expression: str) -> Tuple[str, VersionNumber, str, VersionNumber]:
        text = expression.strip()
        if not text:
            raise InvalidRangeExpression(expression, "empty expression")

        if text == MASTER_STRING:
            return (">=", MASTER, "<=", MASTER)

        tokens = text.split()
        if len(tokens) > 2:
            raise InvalidRangeExpression(expression, "at most two bounds are allowed")

        cmp_a, vers_a = _split_comparator(expression, tokens[0])
        a = _parse_version(expression, vers_a)

        if len(tokens) == 1:
            if cmp_a in ("<=", "<"):
                return (">=", RELEASE, cmp_a, a)
            if cmp_a in (">=", ">"):
                return (cmp_a, a, "<=", HEAD)
            return (">=", a, "<=", a)

        cmp_b, vers_b = _split_comparator(expression, tokens[1])
        b = _parse_version(expression, vers_b)
        if cmp_a == "==" or cmp_b == "==":
            raise InvalidRangeExpression(expression, "For equality, please specify a single version.")
        if b < a:
            a, b = b, a
            cmp_a, cmp_b = cmp_b, cmp_a
        return (cmp_a, a, cmp_b, b)

    @classmethod
    def parse(cls, expression: str) -> "RangeConstraint":
        """Parse a range expression such as '>=1.0.0 <2.0.0'."""
        return cls(expression)

    @classmethod
    def exactly(cls, version: Union[str, VersionNumber]) -> "RangeConstraint":
        """Point constraint matching a single version."""
        version = VersionNumber(version)
        return cls(bounds=(">=", version, "<=", version))

    def __setattr__(self, name, value):
        raise AttributeError("RangeConstraint is immutable")

    @property
    def bounds(self) -> Tuple[str, VersionNumber, str, VersionNumber]:
        return (self.cmp_low, self.low, self.cmp_high, self.high)

    @property
    def is_master(self) -> bool:
        return self.low == MASTER

    def valid(self) -> bool:
        """True if at least the bounds describe a non-empty interval."""
        if self.low == self.high:
            return True
        return (
            self.low < self.high
            and _compare(self.cmp_low, self.high, self.low)
            and _compare(self.cmp_high, self.low, self.high)
        )

    def matches(self, version: Union[str, VersionNumber]) -> bool:
        """Check whether a version lies inside this range."""
        version = VersionNumber(version)
        # master only matches master
        if self.low == MASTER or version == MASTER:
            return self.low == version
        return (
            _compare(self.cmp_low, version, self.low)
            and _compare(self.cmp_high, version, self.high)
        )

    def merge(self, other: "RangeConstraint") -> "RangeConstraint":
        """
        Intersect two constraints.

        An invalid side yields the other side unchanged. The result itself
        may be invalid when the two intervals do not overlap.
        """
        if not self.valid():
            return other
        if not other.valid():
            return self

        if self.low > other.low:
            low, cmp_low = self.low, self.cmp_low
        elif other.low > self.low:
            low, cmp_low = other.low, other.cmp_low
        else:
            low = self.low
            cmp_low = self.cmp_low if _is_strict(self.cmp_low, low) else other.cmp_low

        if self.high < other.high:
            high, cmp_high = self.high, self.cmp_high
        elif other.high < self.high:
            high, cmp_high = other.high, other.cmp_high
        else:
            high = self.high
            cmp_high = self.cmp_high if _is_strict(self.cmp_high, high) else other.cmp_high

        return RangeConstraint(bounds=(cmp_low, low, cmp_high, high))

    def __eq__(self, other) -> bool:
        if isinstance(other, str):
            try:
                other = RangeConstraint(other)
            except InvalidRangeExpression:
                return False
        if not isinstance(other, RangeConstraint):
            return NotImplemented
        return self.bounds == other.bounds

    def __hash__(self) -> int:
        return hash(self.bounds)

    def __str__(self) -> str:
        if self.low == MASTER and self.high == MASTER:
            return MASTER_STRING
        if self.low == self.high and self.cmp_low == ">=" and self.cmp_high == "<=":
            return f"=={self.low}"

        parts = []
        if not (self.low == RELEASE and self.cmp_low == ">="):
            parts.append(f"{self.cmp_low}{self.low}")
        if not (self.high == HEAD and self.cmp_high == "<="):
            parts.append(f"{self.cmp_high}{self.high}")
        if not parts:
            return ">=0.0.0"
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"RangeConstraint('{self}')"
