from rich.text import Text
from textual.containers import Vertical
from textual.widgets import Input, Static, Tree
from textual.widgets.tree import TreeNode

from novelscript.outcome import Failure
from novelscript.query.render import render
from novelscript.script.visual import VisualNode
from novelscript.tui.state import AppState
from novelscript.tui.views.base import View


def _label(node: VisualNode) -> Text:
    return Text(node.caption() or "·")


def _add(parent: TreeNode, node: VisualNode) -> None:
    if node.is_leaf:
        parent.add_leaf(_label(node), data=node.offset)
        return
    branch = parent.add(_label(node), data=node.offset, expand=not node.collapsible)
    for child in node.children:
        _add(branch, child)


def build_result_tree(node: VisualNode) -> Tree:
    """Textual Tree for a rendered value; node data is the source offset."""
    tree: Tree = Tree(_label(node), data=node.offset, id="query-result")
    tree.root.expand()
    for child in node.children:
        _add(tree.root, child)
    return tree


class QueryView(View):
    name = "query"

    HINTS = "Enter:evaluate  F2:scenes  Esc:editor"

    def render(self, state: AppState):
        result = state.query.result
        if result is None:
            output = Static("Type an expression, e.g. doc.cues(\"BGM\")", id="query-help")
        elif isinstance(result, Failure):
            output = Static(Text(str(result.diagnostic), style="bold red"), id="query-error")
        else:
            output = build_result_tree(render(result.value))

        expression = state.query.expression or state.config.query.default_expression
        return [
            Vertical(
                Input(value=expression, placeholder="expression", id="query-input"),
                output,
                Static(self.HINTS, id="hint-bar"),
                id="query_layout",
            )
        ]

    def focus_id(self, state: AppState) -> str | None:
        return "query-input"
