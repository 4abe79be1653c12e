"""
Maven 版本体系 (Forge / NeoForge)

版本号由 `.` 或 `-` 分隔的版本项组成，数字与字母交界处同样切分；
版本范围为区间记法，逗号分隔的子句之间是逻辑或。

    >>> MavenVersionRange.parse("(,1.0],[1.2,)").satisfies(MavenVersion.parse("2.0"))
    True
"""

from typing import Optional, Sequence, Tuple, Union

from tmod.version.base import (
    Clause,
    Combinator,
    Version,
    VersionFamily,
    VersionRange,
)
from tmod.version.scanner import DIGITS, LETTERS, Scanner

Item = Union[int, str]
ItemKey = Tuple[int, int, str]

# 已知限定词的先后顺序，空串代表正式版
QUALIFIERS = ("alpha", "beta", "milestone", "rc", "snapshot", "", "sp")
QUALIFIER_ALIASES = {"cr": "rc", "ga": "", "final": "", "release": ""}

# 较短版本的补位项，与正式版限定词等价
PADDING_KEY: ItemKey = (0, QUALIFIERS.index(""), "")


def _item_key(item: Item) -> ItemKey:
    """
    版本项的排序键

    字母项按已知限定词顺序排列，未知限定词排在已知限定词之后并按字典序比较；
    数字项总是高于字母项。
    """
    if isinstance(item, int):
        return 1, item, ""
    if item in QUALIFIERS:
        return 0, QUALIFIERS.index(item), ""
    return 0, len(QUALIFIERS), item


def _canonical(items: Sequence[Item]) -> Tuple[Item, ...]:
    """
    规范化版本项：统一限定词别名，去掉字母项之前与末尾的 0，以及末尾的正式版限定词

        1.0.0 -> 1    1.0-alpha -> 1-alpha    1.0-ga -> 1
    """
    result: list = []
    for item in items:
        if isinstance(item, str):
            item = QUALIFIER_ALIASES.get(item, item)
            while result and result[-1] == 0:
                result.pop()
        result.append(item)
    while result and result[-1] in (0, ""):
        result.pop()
    return tuple(result)


class MavenVersion(Version):
    """Maven 风格版本号"""

    family = VersionFamily.MAVEN

    def __init__(self, items: Sequence[Item], separators: Optional[Sequence[str]] = None):
        if not items:
            raise ValueError("Maven 版本至少需要一个版本项")
        self.items: Tuple[Item, ...] = tuple(items)
        if separators is None:
            separators = ["."] * (len(self.items) - 1)
        self.separators: Tuple[str, ...] = tuple(separators)

    @classmethod
    def parse(cls, text: str) -> "MavenVersion":
        scanner = Scanner(text)
        version = cls.scan(scanner)
        scanner.expect_end("Maven 版本号")
        return version

    @classmethod
    def scan(cls, scanner: Scanner) -> "MavenVersion":
        """从扫描器当前位置读取一个版本号，遇到非版本字符即停止"""
        first = cls._scan_item(scanner)
        if first is None:
            scanner.error("缺少 Maven 版本号")

        items, separators = [first], []
        while True:
            start = scanner.pos
            separator = scanner.peek() if scanner.peek() in (".", "-") else ""
            if separator:
                scanner.pos += 1
            item = cls._scan_item(scanner)
            if item is None:
                if separator:
                    scanner.pos = start
                    scanner.error("分隔符之后缺少版本项")
                break
            items.append(item)
            separators.append(separator)
        return cls(items, separators)

    @staticmethod
    def _scan_item(scanner: Scanner) -> Optional[Item]:
        digits = scanner.match(DIGITS)
        if digits is not None:
            return int(digits)
        letters = scanner.match(LETTERS)
        if letters is not None:
            return letters.lower()
        return None

    def _normalized(self) -> Tuple[Item, ...]:
        return _canonical(self.items)

    def _compare(self, other: "MavenVersion") -> int:  # type: ignore[override]
        # 比较规范化后的版本项，较短一方视为以正式版补齐
        left, right = self._normalized(), other._normalized()
        for index in range(max(len(left), len(right))):
            left_key = _item_key(left[index]) if index < len(left) else PADDING_KEY
            right_key = _item_key(right[index]) if index < len(right) else PADDING_KEY
            if left_key != right_key:
                return 1 if left_key > right_key else -1
        return 0

    def __hash__(self) -> int:
        return hash((self.family, self._normalized()))

    def __str__(self) -> str:
        parts = [str(self.items[0])]
        for separator, item in zip(self.separators, self.items[1:]):
            parts.append(f"{separator}{item}")
        return "".join(parts)


class Minimum(Clause):
    """裸版本号：软性下限 (>=)"""

    def __init__(self, version: MavenVersion):
        self.version = version

    def matches(self, version: Version) -> bool:
        return version >= self.version

    def __str__(self) -> str:
        return str(self.version)


class Exact(Clause):
    """[version]：精确匹配"""

    def __init__(self, version: MavenVersion):
        self.version = version

    def matches(self, version: Version) -> bool:
        return version == self.version

    def __str__(self) -> str:
        return f"[{self.version}]"


class Interval(Clause):
    """区间：任一端可缺省（无界），但不能两端都缺省"""

    def __init__(
        self,
        lower: Optional[MavenVersion],
        lower_inclusive: bool,
        upper: Optional[MavenVersion],
        upper_inclusive: bool,
    ):
        if lower is None and upper is None:
            raise ValueError("区间两端不能同时为空")
        self.lower = lower
        self.lower_inclusive = lower_inclusive
        self.upper = upper
        self.upper_inclusive = upper_inclusive

    def matches(self, version: Version) -> bool:
        if self.lower is not None:
            if self.lower_inclusive and not version >= self.lower:
                return False
            if not self.lower_inclusive and not version > self.lower:
                return False
        if self.upper is not None:
            if self.upper_inclusive and not version <= self.upper:
                return False
            if not self.upper_inclusive and not version < self.upper:
                return False
        return True

    def __str__(self) -> str:
        left = "[" if self.lower_inclusive else "("
        right = "]" if self.upper_inclusive else ")"
        lower = "" if self.lower is None else str(self.lower)
        upper = "" if self.upper is None else str(self.upper)
        return f"{left}{lower},{upper}{right}"


class MavenVersionRange(VersionRange):
    """Maven 版本范围，子句之间为逻辑或"""

    family = VersionFamily.MAVEN
    combinator = Combinator.ANY

    @classmethod
    def parse(cls, text: str) -> "MavenVersionRange":
        scanner = Scanner(text)
        clauses = [cls._scan_clause(scanner)]
        while scanner.eat(","):
            scanner.skip_spaces()
            clauses.append(cls._scan_clause(scanner))
        scanner.expect_end("Maven 版本范围")
        return cls(clauses)

    @staticmethod
    def _starts_version(scanner: Scanner) -> bool:
        return scanner.peek().isascii() and scanner.peek().isalnum()

    @classmethod
    def _scan_clause(cls, scanner: Scanner) -> Clause:
        # 1. 裸版本号  2. [版本号]  3. 区间
        if cls._starts_version(scanner):
            return Minimum(MavenVersion.scan(scanner))

        start = scanner.pos
        if scanner.eat("["):
            if cls._starts_version(scanner):
                version = MavenVersion.scan(scanner)
                if scanner.eat("]"):
                    return Exact(version)
            scanner.pos = start

        if scanner.eat("("):
            lower_inclusive = False
        elif scanner.eat("["):
            lower_inclusive = True
        else:
            scanner.error("期望版本号、'[' 或 '('")

        lower = MavenVersion.scan(scanner) if cls._starts_version(scanner) else None
        if not scanner.eat(","):
            scanner.error("区间缺少 ','")
        scanner.skip_spaces()
        upper = MavenVersion.scan(scanner) if cls._starts_version(scanner) else None

        if scanner.eat(")"):
            upper_inclusive = False
        elif scanner.eat("]"):
            upper_inclusive = True
        else:
            scanner.error("区间缺少 ')' 或 ']'")

        if lower is None and upper is None:
            scanner.pos = start
            scanner.error("区间两端不能同时为空")
        return Interval(lower, lower_inclusive, upper, upper_inclusive)

    def __str__(self) -> str:
        return ",".join(str(clause) for clause in self.clauses)
