"""
Fabric 版本体系 (Fabric / Quilt)

版本号遵循 SemVer：major.minor.patch[-prerelease][+build]，构建元数据不参与比较；
版本要求为逗号（或空白）分隔的运算符列表，子句之间是逻辑与。

    >>> FabricVersionReq.parse(">=1.2.3,<1.8.0").satisfies(FabricVersion.parse("1.5.0"))
    True
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from tmod.version.base import (
    Clause,
    Combinator,
    Version,
    VersionFamily,
    VersionRange,
)
from tmod.version.scanner import DIGITS, Scanner

Identifier = Union[int, str]

# 按 SemVer 2.0 接受大小写字母与字母数字混合的标识符 (如 Alpha、rc1)
IDENTIFIER = re.compile(r"[0-9A-Za-z][0-9A-Za-z-]*")
WILDCARD = re.compile(r"[xX*]")


def _scan_number(scanner: Scanner, field: str) -> int:
    start = scanner.pos
    digits = scanner.match(DIGITS)
    if digits is None:
        scanner.error(f"{field} 需要一个数字")
    if len(digits) > 1 and digits.startswith("0"):
        scanner.pos = start
        scanner.error(f"{field} 不允许前导零")
    return int(digits)


def _scan_identifiers(scanner: Scanner, field: str, numeric: bool) -> Tuple[str, ...]:
    """读取以 '.' 分隔的标识符列表；numeric 为真时纯数字标识符不允许前导零"""
    identifiers = []
    while True:
        start = scanner.pos
        identifier = scanner.match(IDENTIFIER)
        if identifier is None:
            scanner.error(f"{field} 中存在空标识符")
        if numeric and identifier.isdigit() and len(identifier) > 1 and identifier.startswith("0"):
            scanner.pos = start
            scanner.error(f"{field} 的数字标识符不允许前导零")
        identifiers.append(identifier)
        if not scanner.eat("."):
            return tuple(identifiers)


def _identifier_key(identifier: str) -> Tuple[int, int, str]:
    # 数字标识符按数值比较，且总是低于字母标识符
    if identifier.isdigit():
        return 0, int(identifier), ""
    return 1, 0, identifier


class FabricVersion(Version):
    """SemVer 风格版本号"""

    family = VersionFamily.FABRIC

    def __init__(
        self,
        major: int,
        minor: int,
        patch: int,
        pre: Sequence[str] = (),
        build: Sequence[str] = (),
    ):
        self.major = major
        self.minor = minor
        self.patch = patch
        self.pre: Tuple[str, ...] = tuple(pre)
        self.build: Tuple[str, ...] = tuple(build)

    @classmethod
    def parse(cls, text: str) -> "FabricVersion":
        scanner = Scanner(text)
        version = cls.scan(scanner)
        scanner.expect_end("Fabric 版本号")
        return version

    @classmethod
    def scan(cls, scanner: Scanner) -> "FabricVersion":
        major = _scan_number(scanner, "主版本号")
        if not scanner.eat("."):
            scanner.error("主版本号之后缺少 '.'")
        minor = _scan_number(scanner, "次版本号")
        if not scanner.eat("."):
            scanner.error("次版本号之后缺少 '.'")
        patch = _scan_number(scanner, "修订号")
        pre, build = cls._scan_suffix(scanner)
        return cls(major, minor, patch, pre, build)

    @staticmethod
    def _scan_suffix(scanner: Scanner) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        pre: Tuple[str, ...] = ()
        build: Tuple[str, ...] = ()
        if scanner.eat("-"):
            pre = _scan_identifiers(scanner, "预发布段", numeric=True)
        if scanner.eat("+"):
            build = _scan_identifiers(scanner, "构建元数据", numeric=False)
        return pre, build

    @classmethod
    def coerce(cls, text: str) -> "FabricVersion":
        """宽松解析游戏版本号：缺省的次版本号与修订号补零 (1.20 -> 1.20.0)"""
        scanner = Scanner(text)
        part = VersionPart.scan(scanner)
        scanner.expect_end("游戏版本号")
        return part.floor()

    @property
    def is_prerelease(self) -> bool:
        return bool(self.pre)

    def _key(self) -> tuple:
        if self.pre:
            pre_key: tuple = (0, tuple(_identifier_key(item) for item in self.pre))
        else:
            # 正式版高于任何预发布版本
            pre_key = (1, ())
        return self.major, self.minor, self.patch, pre_key

    def _compare(self, other: "FabricVersion") -> int:  # type: ignore[override]
        left, right = self._key(), other._key()
        return (left > right) - (left < right)

    def __hash__(self) -> int:
        return hash((self.family, self._key()))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += "-" + ".".join(self.pre)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


@dataclass(frozen=True)
class VersionPart:
    """版本要求中的（可能不完整的）版本号，如 1、1.20、1.20.1、1.20.x"""

    major: int
    minor: Optional[int] = None
    patch: Optional[int] = None
    pre: Tuple[str, ...] = ()

    @classmethod
    def scan(cls, scanner: Scanner) -> "VersionPart":
        major = _scan_number(scanner, "主版本号")
        minor = patch = None
        pre: Tuple[str, ...] = ()
        if scanner.eat("."):
            if scanner.match(WILDCARD):
                return cls(major)
            minor = _scan_number(scanner, "次版本号")
            if scanner.eat("."):
                if scanner.match(WILDCARD):
                    return cls(major, minor)
                patch = _scan_number(scanner, "修订号")
                pre, _build = FabricVersion._scan_suffix(scanner)
        return cls(major, minor, patch, pre)

    @property
    def is_full(self) -> bool:
        return self.patch is not None

    def floor(self) -> FabricVersion:
        """该部分版本所覆盖的最小版本"""
        return FabricVersion(self.major, self.minor or 0, self.patch or 0, self.pre)

    def bump(self) -> FabricVersion:
        """越过最后一个给出的版本项后的下一个版本"""
        if self.minor is None:
            return FabricVersion(self.major + 1, 0, 0)
        if self.patch is None:
            return FabricVersion(self.major, self.minor + 1, 0)
        return FabricVersion(self.major, self.minor, self.patch + 1)

    def tilde_ceiling(self) -> FabricVersion:
        if self.minor is None:
            return FabricVersion(self.major + 1, 0, 0)
        return FabricVersion(self.major, self.minor + 1, 0)

    def caret_ceiling(self) -> FabricVersion:
        # 不允许改变最左侧的非零版本项
        if self.major > 0 or self.minor is None:
            return FabricVersion(self.major + 1, 0, 0)
        if self.minor > 0 or self.patch is None:
            return FabricVersion(0, self.minor + 1, 0)
        return FabricVersion(0, 0, self.patch + 1)

    def __str__(self) -> str:
        text = str(self.major)
        if self.minor is not None:
            text += f".{self.minor}"
        if self.patch is not None:
            text += f".{self.patch}"
        if self.pre:
            text += "-" + ".".join(self.pre)
        return text


# 解析顺序：两字符运算符在单字符之前
OPERATORS = (">=", "<=", "=", ">", "<", "~", "^")


class Operator(Clause):
    """单个版本运算符；op 为空串表示省略运算符的精确匹配"""

    def __init__(self, op: str, part: Optional[VersionPart]):
        self.op = op
        self.part = part

    def matches(self, version: Version) -> bool:
        if self.op == "*":
            return True

        part = self.part
        floor = part.floor()
        if self.op in ("=", ""):
            if part.is_full:
                return version == floor
            return floor <= version < part.bump()
        if self.op == ">":
            return version > floor if part.is_full else version >= part.bump()
        if self.op == ">=":
            return version >= floor
        if self.op == "<":
            return version < floor
        if self.op == "<=":
            return version <= floor if part.is_full else version < part.bump()
        if self.op == "~":
            return floor <= version < part.tilde_ceiling()
        if self.op == "^":
            return floor <= version < part.caret_ceiling()
        raise ValueError(f"未知运算符: {self.op}")

    def __str__(self) -> str:
        if self.op == "*":
            return "*"
        return f"{self.op}{self.part}"


class FabricVersionReq(VersionRange):
    """Fabric 版本要求，子句之间为逻辑与"""

    family = VersionFamily.FABRIC
    combinator = Combinator.ALL

    @classmethod
    def parse(cls, text: str) -> "FabricVersionReq":
        scanner = Scanner(text.strip())
        clauses = [cls._scan_operator(scanner)]
        while not scanner.at_end():
            start = scanner.pos
            scanner.skip_spaces()
            had_comma = scanner.eat(",")
            scanner.skip_spaces()
            if scanner.pos == start:
                break
            if scanner.at_end() and had_comma:
                scanner.error("',' 之后缺少版本要求")
            clauses.append(cls._scan_operator(scanner))
        scanner.expect_end("Fabric 版本要求")
        return cls(clauses)

    @staticmethod
    def _scan_operator(scanner: Scanner) -> Operator:
        if scanner.eat("*"):
            return Operator("*", None)
        for op in OPERATORS:
            if scanner.eat(op):
                return Operator(op, VersionPart.scan(scanner))
        if scanner.peek().isdigit():
            return Operator("", VersionPart.scan(scanner))
        scanner.error("期望版本运算符 (=, >, >=, <, <=, ~, ^, *)")

    def __str__(self) -> str:
        return ",".join(str(clause) for clause in self.clauses)
