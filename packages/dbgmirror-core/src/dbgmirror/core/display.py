"""Rich renderables for backtraces and mirrors.

Used by interactive front-ends that show the same snapshots the protocol
sends to remote clients.
"""

from __future__ import annotations

from typing import Iterable, Optional

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from dbgmirror.core.frame import FrameMirror
from dbgmirror.core.mirrors import Mirror, PropertyMirror


def backtrace_table(frames: Iterable[FrameMirror], include_locals: bool = False) -> Table:
    """Build a table with one row per frame: index, call and source position."""
    table = Table(title="Backtrace", show_lines=include_locals)
    table.add_column("#", justify="right", style="cyan", no_wrap=True)
    table.add_column("Invocation", style="bold")
    table.add_column("Source", style="dim")

    for frame in frames:
        invocation = Text(frame.invocation_text())
        if include_locals and frame.local_count():
            cell = Group(invocation, Text(frame.locals_text(), style="green"))
        else:
            cell = invocation
        table.add_row(str(frame.index), cell, frame.source_and_position_text())
    return table


def _label(mirror: Mirror, show_handles: bool) -> Text:
    text = Text()
    if show_handles and mirror.handle is not None:
        text.append(f"[{mirror.handle}] ", style="cyan")
    text.append(mirror.type.value, style="magenta")
    text.append(" ")
    text.append(mirror.to_text())
    return text


def mirror_tree(
    mirror: Mirror,
    max_properties: Optional[int] = None,
    show_handles: Optional[bool] = None,
) -> Tree:
    """Build a tree of *mirror* and one level of its properties.

    Defaults for *max_properties* and *show_handles* come from the display
    section of the registry's configuration.
    """
    config = mirror.registry.config.display
    if max_properties is None:
        max_properties = config.max_properties
    if show_handles is None:
        show_handles = config.show_handles

    tree = Tree(_label(mirror, show_handles))
    if not mirror.is_object():
        return tree

    names = mirror.property_names()
    for name in names[:max_properties]:
        prop = mirror.property(name)
        if not isinstance(prop, PropertyMirror):
            continue
        line = Text(str(prop.name), style="bold" if prop.is_enum() else "dim")
        line.append(": ")
        line.append_text(_label(prop.value(), show_handles))
        tree.add(line)
    if len(names) > max_properties:
        tree.add(Text(f"... {len(names) - max_properties} more", style="dim"))
    return tree


def print_backtrace(
    frames: Iterable[FrameMirror],
    console: Optional[Console] = None,
    include_locals: bool = False,
) -> None:
    (console or Console()).print(backtrace_table(frames, include_locals))
