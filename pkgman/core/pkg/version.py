"""版本号与版本约束

Version:
  - 语义化版本 MAJOR.MINOR.PATCH[-prerelease][+build]
  - 分支版本 ~name（如 ~master）

排序规则:
  - 数字版本按 semver 优先级比较，build 元数据不参与比较和相等判断
  - 所有分支版本都排在数字版本之后；分支之间 ~master 最大，其余按名称比较

Constraint 语法:
  *  / 空串            任意版本
  1.2.3 / ==1.2.3      精确匹配
  ~master              精确匹配分支
  >=1.0 / >1 / <2 / <=2.1.0
  >=1.0.0 <2.0.0       多个比较条件（空格分隔，全部满足）
  ~>1.2.3              >=1.2.3 <1.3.0
  ~>1.2                >=1.2.0 <2.0.0
  ^1.2.3               >=1.2.3 <2.0.0（^0.2.3 即 >=0.2.3 <0.3.0）

约束中的不完整版本号会补零；范围约束永远不匹配分支版本。
"""

from __future__ import annotations

import functools
import operator
import re
from typing import Any, Callable

_SEMVER_RE = re.compile(
    r"^(\d+)\.(\d+)\.(\d+)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
_PARTIAL_RE = re.compile(
    r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
_BRANCH_RE = re.compile(r"^~[0-9A-Za-z_.\-/]+$")
_CLAUSE_RE = re.compile(r"^(>=|<=|==|>|<|=)?(.+)$")

MASTER_BRANCH = "~master"


@functools.total_ordering
class Version:
    """全序版本号"""

    __slots__ = ("major", "minor", "patch", "prerelease", "build", "branch")

    def __init__(
        self,
        major: int = 0,
        minor: int = 0,
        patch: int = 0,
        prerelease: tuple[str, ...] = (),
        build: str = "",
        branch: str = "",
    ) -> None:
        self.major = major
        self.minor = minor
        self.patch = patch
        self.prerelease = prerelease
        self.build = build
        self.branch = branch

    @classmethod
    def parse(cls, text: str) -> Version:
        """解析版本字符串，非法时抛出 ValueError"""
        if not isinstance(text, str):
            raise ValueError(f"版本号必须是字符串: {text!r}")
        text = text.strip()
        if _BRANCH_RE.match(text):
            return cls(branch=text)
        m = _SEMVER_RE.match(text)
        if not m:
            raise ValueError(f"无效的版本号: '{text}'")
        major, minor, patch, pre, build = m.groups()
        return cls(
            int(major), int(minor), int(patch),
            tuple(pre.split(".")) if pre else (),
            build or "",
        )

    @property
    def is_branch(self) -> bool:
        return bool(self.branch)

    def _key(self) -> tuple[Any, ...]:
        if self.branch:
            return (1, self.branch == MASTER_BRANCH, self.branch)
        if self.prerelease:
            pre: tuple[Any, ...] = (0, tuple(
                (0, int(p), "") if p.isdigit() else (1, 0, p)
                for p in self.prerelease
            ))
        else:
            pre = (1,)
        return (0, self.major, self.minor, self.patch, pre)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.branch:
            return self.branch
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text

    def __repr__(self) -> str:
        return f"Version('{self}')"


def _parse_partial(text: str) -> tuple[int, Version]:
    """解析约束里的版本号（允许省略 minor / patch），返回 (数字段个数, Version)"""
    m = _PARTIAL_RE.match(text)
    if not m:
        raise ValueError(f"无效的版本号: '{text}'")
    major, minor, patch, pre, build = m.groups()
    count = 1 + (minor is not None) + (patch is not None)
    return count, Version(
        int(major), int(minor or 0), int(patch or 0),
        tuple(pre.split(".")) if pre else (),
        build or "",
    )


_OPS: dict[str, Callable[[Version, Version], bool]] = {
    "==": operator.eq,
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
}


class Constraint:
    """版本约束: 若干 (运算符, 版本) 子句，全部满足才算匹配；无子句表示任意版本"""

    __slots__ = ("clauses", "text")

    def __init__(self, clauses: tuple[tuple[str, Version], ...] = (), text: str = "*") -> None:
        self.clauses = clauses
        self.text = text

    @classmethod
    def any(cls) -> Constraint:
        return cls()

    @classmethod
    def exact(cls, version: Version) -> Constraint:
        return cls((("==", version),), str(version))

    @classmethod
    def parse(cls, text: str) -> Constraint:
        """解析约束字符串，非法时抛出 ValueError"""
        if not isinstance(text, str):
            raise ValueError(f"版本约束必须是字符串: {text!r}")
        raw = text.strip()
        if raw in ("", "*"):
            return cls.any()

        if raw.startswith("~>"):
            count, base = _parse_partial(raw[2:].strip())
            if count >= 3:
                upper = Version(base.major, base.minor + 1, 0)
            else:
                upper = Version(base.major + 1, 0, 0)
            return cls(((">=", base), ("<", upper)), raw)

        if raw.startswith("^"):
            _, base = _parse_partial(raw[1:].strip())
            if base.major > 0:
                upper = Version(base.major + 1, 0, 0)
            elif base.minor > 0:
                upper = Version(0, base.minor + 1, 0)
            else:
                upper = Version(0, 0, base.patch + 1)
            return cls(((">=", base), ("<", upper)), raw)

        if raw.startswith("~"):
            return cls.exact(Version.parse(raw))

        normalized = re.sub(r"(>=|<=|==|>|<|=)\s+", r"\1", raw)
        clauses: list[tuple[str, Version]] = []
        for token in normalized.split():
            m = _CLAUSE_RE.match(token)
            if not m:
                raise ValueError(f"无效的版本约束: '{raw}'")
            op = m.group(1) or "=="
            if op == "=":
                op = "=="
            bound_text = m.group(2)
            if bound_text.startswith("~"):
                if op != "==":
                    raise ValueError(f"分支版本只能精确匹配: '{raw}'")
                bound = Version.parse(bound_text)
            else:
                _, bound = _parse_partial(bound_text)
            clauses.append((op, bound))
        return cls(tuple(clauses), raw)

    def matches(self, version: Version) -> bool:
        if not self.clauses:
            return True
        if version.is_branch:
            return all(op == "==" and version == bound for op, bound in self.clauses)
        return all(_OPS[op](version, bound) for op, bound in self.clauses)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Constraint('{self.text}')"
