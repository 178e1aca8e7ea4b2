"""
Structured Prompt Renderer.

Prompts are built as trees of fragments and serialized into indented
pseudo-XML, one tag per line:

    <achievements>
      <achievement>
        <title>Shipped login form</title>
        <event-end>Present</event-end>
      </achievement>
    </achievements>

Rendering is pure and synchronous. Tag names are not validated (callers use
the ALLOWED_TAGS vocabulary); only the tree shape is checked, and a malformed
tree raises MalformedFragmentError instead of producing a corrupted prompt.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple, Union

from brag_pipeline.common.error_handling import MalformedFragmentError

INDENT = "  "

# Tag vocabulary used by the fragment builders and assemblers
ALLOWED_TAGS = frozenset({
    # preamble
    "purpose", "background", "instructions", "instruction", "user-instructions",
    "input-format", "output-format", "variables", "examples", "example",
    "today", "language", "document-title", "days", "user-input",
    # chat
    "chat-history", "message",
    # companies / projects
    "companies", "company", "projects", "project", "id", "name", "role",
    "domain", "description", "status", "start-date", "end-date", "remote-url",
    # achievements
    "achievements", "achievement", "title", "summary", "details", "impact",
    "event-start", "event-end", "event-duration", "source", "company-id", "project-id",
    # git
    "repository", "path", "commits", "commit", "hash", "author", "date",
    "files-changed", "file", "branch", "pull-request", "number",
    # evals
    "expected", "output",
})


@dataclass(frozen=True, eq=False)
class Leaf:
    """A fragment holding a single text value."""

    tag: str
    text: Optional[str] = ""


@dataclass(frozen=True, eq=False)
class Node:
    """A fragment holding ordered child fragments. `None` children are skipped."""

    tag: str
    children: Tuple[Optional["Fragment"], ...] = ()
    attributes: Mapping[str, Optional[str]] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.children, list):
            object.__setattr__(self, "children", tuple(self.children))


Fragment = Union[Leaf, Node]
FragmentInput = Union[Fragment, Sequence[Optional[Fragment]]]

# Assemblers accept any callable with this shape
Renderer = Callable[[FragmentInput], str]


def render_prompt(fragments: FragmentInput, depth: int = 0) -> str:
    """
    Render a fragment tree (or a list of fragments as an implicit root).

    Args:
        fragments: A Leaf, a Node, or a sequence of fragments
        depth: Nesting depth of the roots; a fragment rendered at depth N is
            byte-identical to the same fragment nested N levels deep

    Returns:
        The indented markup string

    Raises:
        MalformedFragmentError: If the tree shape is invalid (leaf holding
            fragments, non-fragment child, or a fragment reachable twice)
    """
    lines: List[str] = []
    seen: Set[int] = set()

    if isinstance(fragments, (Leaf, Node)):
        roots: Sequence[Optional[Fragment]] = (fragments,)
    elif isinstance(fragments, (list, tuple)):
        roots = fragments
    else:
        raise MalformedFragmentError(
            f"Cannot render {type(fragments).__name__}; expected a fragment or a list of fragments"
        )

    for root in roots:
        if root is None:
            continue
        _render_fragment(root, depth, seen, lines)

    return "\n".join(lines)


def _render_fragment(fragment: Fragment, depth: int, seen: Set[int], lines: List[str]) -> None:
    if not isinstance(fragment, (Leaf, Node)):
        raise MalformedFragmentError(
            f"Expected a prompt fragment, got {type(fragment).__name__}: {fragment!r:.80}"
        )

    # Every fragment has exactly one parent; this also rules out cycles
    if id(fragment) in seen:
        raise MalformedFragmentError(f"Fragment <{fragment.tag}> is reachable more than once")
    seen.add(id(fragment))

    pad = INDENT * depth

    if isinstance(fragment, Leaf):
        _render_leaf(fragment, pad, lines)
        return

    attrs = _render_attributes(fragment.attributes)
    children = [child for child in fragment.children if child is not None]
    if not children:
        lines.append(f"{pad}<{fragment.tag}{attrs} />")
        return

    lines.append(f"{pad}<{fragment.tag}{attrs}>")
    for child in children:
        _render_fragment(child, depth + 1, seen, lines)
    lines.append(f"{pad}</{fragment.tag}>")


def _render_leaf(leaf: Leaf, pad: str, lines: List[str]) -> None:
    text = leaf.text
    if text is not None and not isinstance(text, str):
        raise MalformedFragmentError(
            f"Leaf <{leaf.tag}> must hold text, got {type(text).__name__}"
        )

    text = (text or "").strip("\n")
    if not text.strip():
        lines.append(f"{pad}<{leaf.tag} />")
        return

    if "\n" not in text:
        lines.append(f"{pad}<{leaf.tag}>{text}</{leaf.tag}>")
        return

    lines.append(f"{pad}<{leaf.tag}>")
    for line in text.split("\n"):
        lines.append(f"{pad}{INDENT}{line}" if line.strip() else "")
    lines.append(f"{pad}</{leaf.tag}>")


def _render_attributes(attributes: Mapping[str, Optional[str]]) -> str:
    parts = [f' {name}="{value}"' for name, value in attributes.items() if value is not None]
    return "".join(parts)


def iter_fragments(fragments: FragmentInput) -> Iterator[Fragment]:
    """Yield every fragment of a tree depth-first (pre-order), skipping None."""
    stack: List[Optional[Fragment]]
    if isinstance(fragments, (Leaf, Node)):
        stack = [fragments]
    else:
        stack = list(reversed(list(fragments)))

    while stack:
        fragment = stack.pop()
        if fragment is None:
            continue
        yield fragment
        if isinstance(fragment, Node):
            stack.extend(reversed(fragment.children))
