"""
版本与版本范围的公共基类

两套版本体系 (Maven / Fabric) 共享比较协议，但彼此之间不可比较：
跨体系比较会抛出 UnsupportedComparisonError，而不是静默转换。
"""

from enum import Enum
from typing import ClassVar, Iterable, List, Sequence

from tmod.exceptions import UnsupportedComparisonError


class VersionFamily(Enum):
    """版本体系"""

    MAVEN = "maven"
    FABRIC = "fabric"


class Combinator(Enum):
    """范围中逗号分隔子句的组合方式"""

    ANY = "any"  # 逻辑或 (Maven)
    ALL = "all"  # 逻辑与 (Fabric)


class Version:
    """版本值基类，子类需实现 _compare 与 __hash__"""

    family: ClassVar[VersionFamily]

    def _compare(self, other: "Version") -> int:
        raise NotImplementedError

    def _check_family(self, other: object) -> bool:
        if not isinstance(other, Version):
            return False
        if other.family is not self.family:
            raise UnsupportedComparisonError(self, other)
        return True

    def __eq__(self, other: object) -> bool:
        if not self._check_family(other):
            return NotImplemented
        return self._compare(other) == 0  # type: ignore[arg-type]

    def __lt__(self, other: "Version") -> bool:
        if not self._check_family(other):
            return NotImplemented
        return self._compare(other) < 0

    def __le__(self, other: "Version") -> bool:
        if not self._check_family(other):
            return NotImplemented
        return self._compare(other) <= 0

    def __gt__(self, other: "Version") -> bool:
        if not self._check_family(other):
            return NotImplemented
        return self._compare(other) > 0

    def __ge__(self, other: "Version") -> bool:
        if not self._check_family(other):
            return NotImplemented
        return self._compare(other) >= 0

    def __hash__(self) -> int:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class Clause:
    """范围中的单个子句"""

    def matches(self, version: Version) -> bool:
        raise NotImplementedError


class VersionRange:
    """版本范围基类：由若干子句和组合方式构成"""

    family: ClassVar[VersionFamily]
    combinator: ClassVar[Combinator]

    def __init__(self, clauses: Sequence[Clause]):
        self.clauses: List[Clause] = list(clauses)

    def satisfies(self, version: Version) -> bool:
        """判断版本是否满足该范围"""
        if not isinstance(version, Version) or version.family is not self.family:
            raise UnsupportedComparisonError(self, version)
        results = (clause.matches(version) for clause in self.clauses)
        if self.combinator is Combinator.ANY:
            return any(results)
        return all(results)

    def __contains__(self, version: Version) -> bool:
        return self.satisfies(version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return type(self) is type(other) and str(self) == str(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, str(self)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class VersionRangeUnion:
    """同一体系内多个范围的并集 (fabric.mod.json 中的数组写法)"""

    combinator = Combinator.ANY

    def __init__(self, ranges: Iterable[VersionRange]):
        self.ranges: List[VersionRange] = list(ranges)
        families = {item.family for item in self.ranges}
        if len(families) > 1:
            raise UnsupportedComparisonError(self.ranges[0], self.ranges[1])
        self.family = families.pop() if families else None

    def satisfies(self, version: Version) -> bool:
        return any(item.satisfies(version) for item in self.ranges)

    def __contains__(self, version: Version) -> bool:
        return self.satisfies(version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRangeUnion):
            return NotImplemented
        return self.ranges == other.ranges

    def __hash__(self) -> int:
        return hash(tuple(self.ranges))

    def __str__(self) -> str:
        return " || ".join(str(item) for item in self.ranges)

    def __repr__(self) -> str:
        return f"VersionRangeUnion({[str(item) for item in self.ranges]!r})"
