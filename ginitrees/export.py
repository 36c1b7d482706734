from typing import List, Optional

from ._tree import SplitNode


def _render(node: Optional[SplitNode], depth: int, lines: List[str]) -> None:
    if node is None:
        return

    lines.append("\t" * depth + f"({node})")
    _render(node.negative_child, depth + 1, lines)
    _render(node.positive_child, depth + 1, lines)


def render_tree(node: Optional[SplitNode]) -> str:
    """Render a tree as text, one node per line indented by depth with the negative branch first.

    Parameters
    ----------
    node : SplitNode or None
        Root of the tree.

    Returns
    -------
    str
        Rendered tree, empty when there is no tree.
    """
    lines: List[str] = []
    _render(node, 0, lines)
    return "\n".join(lines)
