"""
版本文本扫描器

为 Maven / Fabric 两套语法提供共享的游标式解析工具，失败时报告尚未消费的输入。
"""

import re
from typing import NoReturn, Optional, Pattern

from tmod.exceptions import VersionParseError


class Scanner:
    """基于位置游标的文本扫描器，支持回溯"""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    @property
    def remainder(self) -> str:
        return self.text[self.pos :]

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos] if not self.at_end() else ""

    def eat(self, literal: str) -> bool:
        """消费给定字面量，未匹配时不移动游标"""
        if self.text.startswith(literal, self.pos):
            self.pos += len(literal)
            return True
        return False

    def match(self, pattern: Pattern[str]) -> Optional[str]:
        """在当前位置匹配正则，成功则消费并返回匹配文本"""
        found = pattern.match(self.text, self.pos)
        if found is None or found.end() == self.pos:
            return None
        self.pos = found.end()
        return found.group(0)

    def skip_spaces(self) -> None:
        while self.peek().isspace():
            self.pos += 1

    def error(self, message: str) -> NoReturn:
        raise VersionParseError(message, self.text, self.remainder)

    def expect_end(self, what: str) -> None:
        if not self.at_end():
            self.error(f"{what} 之后存在无法识别的字符")


DIGITS = re.compile(r"[0-9]+")
LETTERS = re.compile(r"[A-Za-z]+")
