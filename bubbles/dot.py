"""Graphviz DOT serialization of a GraphModel.

Output is byte-identical for identical models: arcs in edge order, then
bubbles with a state row, then unstyled bubbles, each group sorted by name.
Every bubble links to its flip endpoint.
"""

from urllib.parse import quote_plus

from bubbles.graph import GraphModel
from db.state_machine import BubbleState


def quote(text: str) -> str:
    """Return ``text`` as a double-quoted DOT ID."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def flip_href(project_id: int, bubble: str, vertical: bool = False) -> str:
    href = f"/projects/{project_id}/flip?bubble={quote_plus(bubble)}"
    if vertical:
        href += "&vertical=1"
    return href


def _node_attrs(
    project_id: int, bubble: str, state: BubbleState | None, vertical: bool
) -> str:
    attrs = [f"href={quote(flip_href(project_id, bubble, vertical))}"]
    color = state.fill_color if state is not None else None
    if color:
        attrs.append(f"style=filled,fillcolor={color}")
    return ",".join(attrs)


def to_dot(graph: GraphModel, vertical: bool = False) -> str:
    """Serialize a graph. Layout is left-to-right unless ``vertical``."""
    lines = ["digraph G {"]
    if not vertical:
        lines.append('\trankdir="LR"')

    for edge in graph.edges:
        lines.append(f"\t{quote(edge.left)} -> {quote(edge.right)}")

    for bubble in sorted(graph.states):
        attrs = _node_attrs(graph.project_id, bubble, graph.states[bubble], vertical)
        lines.append(f"\t{quote(bubble)} [{attrs}]")

    for bubble in sorted(graph.unstyled):
        attrs = _node_attrs(graph.project_id, bubble, None, vertical)
        lines.append(f"\t{quote(bubble)} [{attrs}]")

    lines.append("}")
    return "\n".join(lines) + "\n"
