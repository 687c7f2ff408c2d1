"""
Argotree help/usage generator.

Pure functions of a command node: nothing here parses argv or runs callbacks.

Layout
    OVERVIEW: <description>                      (only when the command has one)

    USAGE: <path> <options> <positionals> [<subcommand>]

    ARGUMENTS:                                   (only when there are positionals)
      <name>                  Description (default: x)

    OPTIONS:
      -n, --name <name>       Description
      --version               Show the version.  (when the root declares a version)
      -h, --help              Show help information.

    SUBCOMMANDS:                                 (only when there are children)
      child (default)         First line of the child's description

      See '<path> help <subcommand>' for detailed help.

Usage conventions
- required option `--name <name>`, optional option `[--name <name>]`, flag `[--name]`;
- required positional `<name>`, optional `[<name>]`, variadic `<name> ...` / `[<name> ...]`;
- `[<subcommand>]` is always bracketed: a node with children may itself be the leaf.

Descriptions start at column 26 and wrap (with rich) at the given width.
"""
from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .binding import builtins
from .utils import *

COLUMN = 26
WIDTH = 80

PALETTE = {
    # === Head sections ===
    "section-label": "bold #FFFFFF",  # Pure white headers
    "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
    "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
    "description-section": "italic #A3A3A3",  # Neutral gray

    # === Names / metavars ===
    "option-name": "bold #00E6FF",  # CYAN for options
    "flag-name": "bold #22C55E",  # GREEN for flags (success/positive)
    "deprecated-name": "bold #F97316 strike",  # ORANGE strike for deprecated
    "metavar": "bold #FFD600",  # AMBER for parameters
    "argument-description": "#9CA3AF",  # Muted gray

    # === Children ===
    "children": "bold #36C5F0",  # Sky-blue subcommands
    "children-description": "#9CA3AF",
    "referral": "#737373",  # Dim footer gray

    # === Fancy panel ===
    "panel-title": "bold #FF4D94",  # Magenta branding
}


def metavar(spec, /):
    """
    Return the bracketed placeholder of a value-bearing spec ("<name>").
    """
    return "<%s>" % coalesce(spec.metavar, kebab(spec.key))


def _names(spec, names=Unset, /):
    names = coalesce(names, spec.names)
    shorts = sorted((name for name in names if not name.startswith("--")), key=len)
    longs = [name for name in names if name.startswith("--")]
    return shorts + longs


def _shape(spec, /):
    """
    Placeholder text for one occurrence of a value-bearing spec, arity included.
    """
    placeholder = metavar(spec)
    match spec.nargs:
        case "?":
            return "[%s]" % placeholder
        case "*":
            return "[%s ...]" % placeholder
        case "+":
            return "%s ..." % placeholder
        case int() as count:
            return " ".join([placeholder] * count)
    return placeholder


def synopsis(spec, /):
    """
    Usage-line form of a spec.
    """
    if spec.kind == "flag":
        return "[%s ...]" % spec.label if spec.counting else "[%s]" % spec.label
    if spec.kind == "option":
        form = "%s %s" % (spec.label, _shape(spec))
    else:
        form = _shape(spec)
    if spec.required or form.startswith("["):
        return form
    return "[%s]" % form


def usage(command, /):
    """
    Return the usage synopsis of a node: path, options, positionals, subcommand.
    """
    parts = [step.name for step in command.path]
    positionals = []
    for spec in command.specs:
        if spec.hidden:
            continue
        if spec.kind == "positional":
            positionals.append(synopsis(spec))
        else:
            parts.append(synopsis(spec))
    parts.extend(positionals)
    if command.children:
        parts.append("[<subcommand>]")
    return " ".join(parts)


def _describe(spec, /):
    """
    Description column of a spec: its descr plus default and deprecation notes.
    """
    fragments = []
    if spec.descr:
        fragments.append(str(spec.descr))
    default = getattr(spec, "default", Unset)
    if default is not Unset and default is not None and default != [] and spec.kind != "flag":
        shown = getattr(default, "value", default)
        if isinstance(shown, list | tuple):
            shown = " ".join(map(str, shown))
        fragments.append("(default: %s)" % shown)
    if spec.deprecated:
        fragments.append("(deprecated)")
    return " ".join(fragments)


def _entry(label, descr, styler, text, console, width, /):
    """
    One table row: two-space indent, label, description at COLUMN (wrapped).
    """
    lines = []
    row = Text.assemble("  ", label)
    if not descr:
        return [row]
    wrapped = text(descr, styler("argument-description")).wrap(console, max(width - COLUMN, 20))
    if len(row) + 1 > COLUMN:
        lines.append(row)
        row = Text(" " * COLUMN)
    else:
        row.append(" " * (COLUMN - len(row)))
    try:
        row.append(wrapped.pop(0))
    except IndexError:
        pass
    lines.append(row)
    for line in wrapped:
        lines.append(Text.assemble(" " * COLUMN, line))
    return lines


def lines(command, /, colorful=False, width=WIDTH):
    """
    Return the help screen of a node as a list of rich Text lines.
    """
    styler, text = palette(colorful, PALETTE)
    console = Console(width=width)

    def label(spec, names=Unset):
        style = "deprecated-name" if spec.deprecated else f"{spec.kind}-name"
        fused = Text(", ").join(text(name, styler(style)) for name in _names(spec, names))
        if spec.kind == "option":
            fused.append(" ").append(text(_shape(spec), styler("metavar")))
        return fused

    def section(title):
        return Text.assemble(text(title, styler("section-label")), ":")

    screen = []

    if command.descr:
        overview = text(str(command.descr), styler("description-section")).wrap(console, width - len("OVERVIEW: "))
        screen.append(Text.assemble(section("OVERVIEW"), " ", overview.pop(0) if overview else ""))
        for line in overview:
            screen.append(Text.assemble(" " * len("OVERVIEW: "), line))
        screen.append(Text(""))

    screen.append(Text.assemble(
        section("USAGE"), " ", text(usage(command), styler("usage-section"))
    ))

    if arguments := [spec for spec in command.specs if spec.kind == "positional" and not spec.hidden]:
        screen.append(Text(""))
        screen.append(section("ARGUMENTS"))
        for spec in arguments:
            style = "deprecated-name" if spec.deprecated else "metavar"
            screen.extend(_entry(
                text(_shape(spec), styler(style)), _describe(spec), styler, text, console, width
            ))

    screen.append(Text(""))
    screen.append(section("OPTIONS"))
    for spec in command.specs:
        if spec.kind == "positional" or spec.hidden:
            continue
        screen.extend(_entry(label(spec), _describe(spec), styler, text, console, width))
    for spec, names in reversed(builtins(command)):
        screen.extend(_entry(label(spec, names), str(spec.descr), styler, text, console, width))

    if command.children:
        screen.append(Text(""))
        screen.append(section("SUBCOMMANDS"))
        for name, child in command.children.items():
            marker = " (default)" if child is command.default else ""
            descr = str(child.descr).strip().splitlines()[0] if child.descr else ""
            screen.extend(_entry(
                Text.assemble(text(name, styler("children")), marker), descr, styler, text, console, width
            ))
        screen.append(Text(""))
        screen.append(Text.assemble("  ", text(
            "See '%s help <subcommand>' for detailed help." % " ".join(step.name for step in command.path),
            styler("referral"),
        )))

    return screen


def helptext(command, /, width=WIDTH):
    """
    Return the plain-text help screen of a node.
    """
    return "\n".join(line.plain.rstrip() for line in lines(command, width=width))


def versiontext(command, /):
    """
    Return the version string declared by the root of the node's tree.
    """
    return coalesce(command.root.version, "")


def render(command, /, fancy=False, colorful=False, width=Unset):
    """
    Return the help screen of a node as a rich renderable (a Panel when fancy).
    """
    width = coalesce(width, Console().width) - 4 * fancy
    styler, text = palette(colorful, PALETTE)
    renderable = Group(*lines(command, colorful=colorful, width=width))
    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{command.name} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )
    return renderable


__all__ = (
    "COLUMN",
    "usage",
    "synopsis",
    "metavar",
    "helptext",
    "versiontext",
    "render",
    "lines",
)
