"""
依赖树

根据锁定表离线生成池的依赖树文本。
"""

from typing import List, Set, Tuple

from tmod.pool.pool import Pool

Node = Tuple[str, List["Node"]]


def _remote_node(pool: Pool, slug: str, ancestors: Set[str]) -> Node:
    if slug in ancestors:
        return f"{slug} (循环)", []
    dep_info = pool.locks.get(slug)
    if dep_info is None:
        return f"{slug} (未锁定)", []
    children = [
        _remote_node(pool, dep, ancestors | {slug}) for dep in dep_info.dependencies
    ]
    return slug, children


def build_tree(pool: Pool) -> Node:
    remotes = [_remote_node(pool, slug, set()) for slug in sorted(pool.manually_added)]
    locals_ = []
    for slug, jar in sorted(pool.locals.items()):
        children = []
        for dep in sorted(jar.descriptor.dependencies):
            if dep in pool.locks:
                children.append(_remote_node(pool, dep, {slug}))
            else:
                children.append((f"{dep} (缺失)", []))
        locals_.append((slug, children))
    return "Tmod", [("Remotes", remotes), ("Locals", locals_)]


def render_tree(node: Node) -> List[str]:
    """
    渲染为文本行

        Tmod
        ├── Remotes
        │   └── sodium
        │       └── fabric-api
        └── Locals
    """
    label, children = node
    lines = [label]

    def walk(items: List[Node], prefix: str) -> None:
        for index, (child_label, grandchildren) in enumerate(items):
            last = index == len(items) - 1
            lines.append(f"{prefix}{'└── ' if last else '├── '}{child_label}")
            walk(grandchildren, prefix + ("    " if last else "│   "))

    walk(children, "")
    return lines
