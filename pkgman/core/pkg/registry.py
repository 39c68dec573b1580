"""包注册表与版本解析

注册表由四个分区组成，每个分区按布局类型区分:

  - SINGLE:  name -> 一个包（PROJECT，同名只驻留一个版本）
  - ORDERED: 按加载顺序排列的列表（LOCAL，不做唯一性约束）
  - MULTI:   name -> 多个版本（USER / SYSTEM）

查找候选包时按 PROJECT → LOCAL → USER → SYSTEM 的固定顺序枚举:
  - get_exact(): 顺序即优先级，命中第一个即返回
  - get_best():  扫描全部候选，只有严格更高的版本才替换当前最佳，
                 因此层级不影响最佳版本的选择，同版本时保留优先级高的那个
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator

from pkgman.core.exceptions import ConsistencyError
from pkgman.core.pkg.models import Package, StorageTier
from pkgman.core.pkg.version import Constraint, Version

logger = logging.getLogger(__name__)


class PartitionLayout(str, Enum):
    SINGLE = "single"
    ORDERED = "ordered"
    MULTI = "multi"


TIER_LAYOUTS: dict[StorageTier, PartitionLayout] = {
    StorageTier.PROJECT: PartitionLayout.SINGLE,
    StorageTier.LOCAL: PartitionLayout.ORDERED,
    StorageTier.USER: PartitionLayout.MULTI,
    StorageTier.SYSTEM: PartitionLayout.MULTI,
}


class TierPartition:
    """单个存储层级的包集合"""

    def __init__(self, tier: StorageTier) -> None:
        self.tier = tier
        self.layout = TIER_LAYOUTS[tier]
        self._by_name: dict[str, list[Package]] = {}
        self._ordered: list[Package] = []

    def add(self, pkg: Package, key: str | None = None) -> None:
        """登记一个包；key 默认取包名，扫描器用目录名作为 key"""
        if pkg.tier is not self.tier:
            raise ConsistencyError(f"包 {pkg} 不属于 {self.tier.value} 分区")
        if self.layout is PartitionLayout.ORDERED:
            self._ordered.append(pkg)
        elif self.layout is PartitionLayout.SINGLE:
            self._by_name[key or pkg.name] = [pkg]
        else:
            self._by_name.setdefault(key or pkg.name, []).append(pkg)

    def lookup(self, name: str) -> list[Package]:
        if self.layout is PartitionLayout.ORDERED:
            return [p for p in self._ordered if p.name == name]
        return list(self._by_name.get(name, ()))

    def contains(self, pkg: Package) -> bool:
        return any(p is pkg for p in self)

    def locate(self, pkg: Package) -> tuple[str, int]:
        """定位登记的实例，返回 (key, 下标)；登记的不是同一个对象时视为调用方错误"""
        if self.layout is PartitionLayout.ORDERED:
            raise ConsistencyError(f"本地包不能从注册表移除: {pkg}")
        for key, entries in self._by_name.items():
            for idx, candidate in enumerate(entries):
                if candidate is pkg:
                    return key, idx
        if pkg.name in self._by_name:
            raise ConsistencyError(
                f"注册表中的 {pkg.name} 与要移除的对象不一致 ({pkg.root})"
            )
        raise ConsistencyError(f"包 {pkg.name} ({pkg.root}) 未登记在 {self.tier.value} 分区")

    def remove(self, pkg: Package) -> None:
        key, idx = self.locate(pkg)
        entries = self._by_name[key]
        del entries[idx]
        if not entries:
            del self._by_name[key]

    def __iter__(self) -> Iterator[Package]:
        if self.layout is PartitionLayout.ORDERED:
            return iter(list(self._ordered))
        return iter([p for entries in self._by_name.values() for p in entries])

    def __len__(self) -> int:
        if self.layout is PartitionLayout.ORDERED:
            return len(self._ordered)
        return sum(len(v) for v in self._by_name.values())


class CandidateSequence:
    """某个包名的候选序列：惰性、有限，可重复迭代"""

    def __init__(self, registry: PackageRegistry, name: str) -> None:
        self._registry = registry
        self.name = name

    def __iter__(self) -> Iterator[Package]:
        for partition in self._registry.partitions():
            yield from partition.lookup(self.name)


class PackageRegistry:
    """内存中的包注册表，由扫描器整体重建，由安装 / 卸载增量修改"""

    def __init__(self) -> None:
        self._partitions: dict[StorageTier, TierPartition] = {
            tier: TierPartition(tier) for tier in StorageTier
        }

    def partitions(self) -> list[TierPartition]:
        """按查找优先级排列的分区"""
        return [self._partitions[tier] for tier in StorageTier]

    def partition(self, tier: StorageTier) -> TierPartition:
        return self._partitions[tier]

    def add(self, pkg: Package, key: str | None = None) -> None:
        self._partitions[pkg.tier].add(pkg, key)

    def remove(self, pkg: Package) -> None:
        self._partitions[pkg.tier].remove(pkg)

    def check_removable(self, pkg: Package) -> None:
        """确认 pkg 正是注册表登记的实例，否则抛出 ConsistencyError"""
        self._partitions[pkg.tier].locate(pkg)

    def contains(self, pkg: Package) -> bool:
        return self._partitions[pkg.tier].contains(pkg)

    def candidates(self, name: str) -> CandidateSequence:
        return CandidateSequence(self, name)

    def get_exact(self, name: str, version: Version) -> Package | None:
        for pkg in self.candidates(name):
            if pkg.version == version:
                return pkg
        return None

    def get_best(self, name: str, constraint: Constraint) -> Package | None:
        best: Package | None = None
        for pkg in self.candidates(name):
            if not constraint.matches(pkg.version):
                continue
            if best is None or pkg.version > best.version:
                best = pkg
        return best

    def find(self, name: str, version: Version, tier: StorageTier) -> Package | None:
        """在指定层级内精确查找"""
        for pkg in self._partitions[tier].lookup(name):
            if pkg.version == version:
                return pkg
        return None

    def __iter__(self) -> Iterator[Package]:
        for partition in self.partitions():
            yield from partition

    def __len__(self) -> int:
        return sum(len(p) for p in self._partitions.values())
