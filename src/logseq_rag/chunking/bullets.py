# src/logseq_rag/chunking/bullets.py

"""Bullet outline parsing and rendering.

Logseq stores a page as an outline: one block per line, nested with tabs.

    - Parent
    \t- Child
    \t\t- Grandchild

`parse_bullet_tree` turns that text into a forest of `BulletNode`s and
`render_bullets` turns a forest back into text. Rendering indents by tree
depth, so render -> parse round-trips for any forest whose levels step by one.
"""

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

BULLET_PATTERN = re.compile(r"^(\t*)-\s(.+)$")


@dataclass(frozen=True)
class BulletNode:
    """One outline block and the blocks nested under it."""

    level: int
    text: str
    line: int
    children: tuple["BulletNode", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass
class _OpenBullet:
    level: int
    text: str
    line: int
    children: list["_OpenBullet"] = field(default_factory=list)

    def freeze(self) -> BulletNode:
        return BulletNode(
            level=self.level,
            text=self.text,
            line=self.line,
            children=tuple(child.freeze() for child in self.children),
        )


def parse_bullet_tree(content: str) -> list[BulletNode]:
    """Parse tab-indented bullet lines into a forest.

    Lines that are not bullets (blank lines, prose, space-indented text) are
    skipped and do not close any open ancestor. A bullet that jumps several
    levels deeper is attached to the deepest open ancestor.
    """
    roots: list[_OpenBullet] = []
    # (level, children list of the open node); the sentinel owns the roots
    stack: list[tuple[int, list[_OpenBullet]]] = [(-1, roots)]

    for line_number, line in enumerate(content.split("\n")):
        match = BULLET_PATTERN.match(line.rstrip("\r"))
        if not match:
            continue

        node = _OpenBullet(
            level=len(match.group(1)),
            text=match.group(2),
            line=line_number,
        )

        while stack[-1][0] >= node.level:
            stack.pop()

        stack[-1][1].append(node)
        stack.append((node.level, node.children))

    return [root.freeze() for root in roots]


def render_bullets(nodes: Sequence[BulletNode]) -> str:
    """Render a forest as `<depth tabs>- <text>` lines in document order."""
    lines: list[str] = []

    def _walk(node: BulletNode, depth: int) -> None:
        lines.append("\t" * depth + "- " + node.text)
        for child in node.children:
            _walk(child, depth + 1)

    for node in nodes:
        _walk(node, 0)

    return "\n".join(lines)


def estimate_tokens(text: str) -> int:
    """Approximate token count: one token per four characters, rounded up."""
    return math.ceil(len(text) / 4)
