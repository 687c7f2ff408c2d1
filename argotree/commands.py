"""
Argotree command layer: declare command trees and parse argv against them.

What this module provides
- Command: wraps a Python callable into a node of a command tree with:
  • Parameter discovery from the callable's defaults (Argument, Option, Flag, Group).
  • Hierarchies (parent/children, optional default child) to model subcommands.
  • parse()/parse_as_root(): tokenize, resolve, bind and validate one argv.
  • Help/usage/version text (plain strings or rich renderables).
  • main()/__invoke__(): process entry points that print diagnostics and exit.

- Factories and helpers:
  • command(...): create a Command or a decorator that produces one.
  • invoke(obj, prompt): convenience runner for Commands or plain callables.

Core ideas
- Signature-driven UX: the wrapped function's parameters define the CLI surface.
- One engine pass per parse: nothing from a previous parse survives into the next.
- Friendly diagnostics: errors lead with an ordinal ("at third position") and
  come with a single hint.

Quick start
    from argotree import command, Argument, Option, Flag, Group

    @command(version="1.0.0")
    def tool(
        name=Option(descr="Who to greet."),
    ): ...

    @tool.command(default=True)
    def greet(
        shared=Group(tool),
        times=Option(type=int, default=1),
        *,
        loud=Flag(short=True),
    ):
        for _ in range(times):
            print(("HELLO %s" if loud else "hello %s") % shared.name)

    if __name__ == "__main__":
        tool.main()

See also
- argotree.arguments for spec builders and argument semantics.
- argotree.faults for fault codes and rendering behavior.
"""
import functools
import inspect
import operator
import re
import shlex
import sys
from collections.abc import Iterable

from rich.text import Text

from .arguments import Group, collect
from .faults import *
from .invocations import Invocation
from .rendering import helptext, render, usage
from .resolver import Failed, Resolved, Resolver
from .utils import *
from .validation import validate


class CommandType(type):
    """
    Metaclass that turns Command into an introspectable descriptor class.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics and rich UI.
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      for consistent, human-friendly labels in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with high-signal fields.

            Example
            - command(name='build', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield a sequence of (name, object) pairs for pretty printers.

            Parents and children are shown by name to keep the output finite.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                object = getattr(self, name)
                if name == "parent" and object is not None:
                    object = object.name
                elif name == "children":
                    object = tuple(object)
                yield name, object
        self.__rich_repr__ = __rich_repr__

        return self


def _process_source(cls, metadata):
    """
    Introspect the command callback and materialize its parameter specs.

    Responsibilities
    - Collect the callback's layout {key: spec} (see arguments.collect), which also
      enforces the placement rules (Argument positional-only, Option/Group standard,
      Flag keyword-only).
    - Flatten groups, recursively, into the ordered list of leaf specs.
    - Enforce the node invariants:
      • no spec appears twice (directly or through groups);
      • no two names collide after case/dash normalization;
      • at most one unbounded positional, and it must be the last one.

    Mutates
    - metadata["layout"], metadata["specs"].

    Errors
    - TypeError/ValueError on invalid callbacks or violated invariants.
    """
    layout = metadata["layout"] = collect(metadata["callback"], cls.__typename__)
    specs = metadata["specs"] = []
    names = {}

    for key, spec in layout.items():
        for member in spec.flatten() if isinstance(spec, Group) else (spec,):
            if member in specs:
                raise ValueError(f"{cls.__typename__} 'callback' parameter {member.key!r} is declared twice")
            specs.append(member)
            for name in getattr(member, "names", ()):
                if (folded := normalize(name)) in names:
                    raise ValueError(
                        f"{cls.__typename__} 'callback' name {name!r} collides with {names[folded]!r}"
                    )
                names[folded] = name

    greedy = None
    for spec in specs:
        if spec.kind != "positional":
            continue
        if greedy:
            raise TypeError(f"{cls.__typename__} 'callback' unbounded argument {greedy!r}, must be the last argument")
        greedy = spec.key if spec.unbounded else None


def _process_strings(cls, metadata):
    """
    Normalize scalar string/Text metadata fields (name, descr, version).

    - Validates type: each value must be str | Text | Unset.
    - Trims strings; empty strings are rejected.
    - Command names must also be shell-friendly: no whitespace, no leading dash.
    - Resolves Unset via coalesce(...) to None.
    """
    for name in (
            "name",
            "descr",
            "version",
    ):
        if not isinstance(object := metadata[name], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)

    if re.search(r"\s", name := str(metadata["name"])) or name.startswith("-"):
        raise ValueError(f"{cls.__typename__} 'name' must not contain spaces or start with a dash")


def _attach_to_parent(self, parent, default):
    """
    Register this command under its parent, enforcing unique names.

    - Uses the parent's _children registry to attach self under its name.
    - With default=True, also makes self the parent's default child (once).
    """
    if not parent:
        if default:
            raise TypeError(f"{type(self).__typename__} without a parent cannot be a default subcommand")
        return

    if parent._children.setdefault(name := str(self.name), self) is not self:
        typeof = "subcommand" if parent.parent else "command"
        raise ValueError(f"{type(self).__typename__} {typeof} name {name!r} is already in use")

    if default:
        if parent._default is not None:
            del parent._children[name]
            raise ValueError(f"{type(self).__typename__} {parent.name!r} already has a default subcommand")
        parent._default = self


def _prompt(prompt, /):
    """
    Normalize a prompt into a list of argv strings.

    - Unset: sys.argv[1:].
    - str: split with shlex.split (shell-like quoting).
    - Iterable[str]: used as-is (empty strings are legitimate values).
    """
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("argv must be a string or an iterable of strings")
        return tokens
    raise TypeError("argv must be a string or an iterable of strings")


class Command(metaclass=CommandType):
    """
    Node of a command tree, wrapping a Python callable.

    Responsibilities
    - Introspection: exposes metadata (name, descr, version, specs...) as read-only properties.
    - Composition: parent/child hierarchies with an optional default child.
    - Parsing: parse()/parse_as_root() run the engine and return an Invocation.
    - Rendering: helptext()/usage()/message() as plain strings.
    - Process entry: main()/__invoke__() print diagnostics and exit like a CLI.

    Lifecycle
    - Built once from a callback; the signature is inspected and defaults are
      resolved to specs. Children are attached with child.command(...).
    - The first parse seals the whole tree: attaching more children afterwards
      raises TypeError.
    """

    __introspectable__ = (
        "name",
        "descr",
        "version",
        "layout",
        "specs",
        "parent",
        "children",
        "default",
        "shell",
        "fancy",
        "colorful",
    )

    __displayable__ = (
        "name",
        "descr",
        "version",
        "parent",
        "children",
        "shell",
        "fancy",
        "colorful",
    )

    @property
    def root(self):
        """
        Return the topmost command in the current command hierarchy.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the full ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    def __new__(
            cls,
            source,
            /,
            parent=Unset,
            name=Unset,
            descr=Unset,
            version=Unset,
            *,
            default=False,
            shell=Unset,
            fancy=Unset,
            colorful=Unset
    ):
        """
        Construct a Command from a callback.

        Parameters
        - parent: Command | Unset
          Parent under which to attach this command. If Unset, it is a root.
        - name: str | Unset
          Defaults to the callback name in kebab case ("has_version_flag" → "has-version-flag").
        - descr: str | Text | Unset
          Defaults to the callback docstring.
        - version: str | Unset
          Only a root may declare one; it activates the built-in --version.
        - default: bool (keyword-only)
          Make this command its parent's default child.
        - shell, fancy, colorful: bool | Unset
          Runtime flags. If Unset, values inherit from parent (or default False).

        Raises
        - TypeError/ValueError on invalid parent, metadata types, duplicate names,
          invalid callback/defaults, or a sealed parent tree.
        """
        if not isinstance(parent, Command | Unset):
            raise TypeError(f"{cls.__typename__} 'parent' must be a command")
        elif parent and parent.root._sealed:
            raise TypeError(f"{cls.__typename__} 'parent' tree was already parsed and cannot grow")
        elif any(spec.kind == "positional" for spec in getattr(parent, "specs", ())):
            raise ValueError(f"{cls.__typename__} 'parent' command cannot have any arguments")
        if not callable(source):
            raise TypeError(f"{cls.__typename__} 'callback' must be callable")

        metadata = {
            "callback": source,
            "name": coalesce(name, kebab(getattr(source, "__name__", type(source).__name__))),
            "descr": coalesce(descr, inspect.getdoc(source) or Unset),
            "version": version,
            # Runtime flags (inherit from parent when Unset)
            "shell": bool(coalesce(shell, getattr(parent, "shell", False))),
            "fancy": bool(coalesce(fancy, getattr(parent, "fancy", False))),
            "colorful": bool(coalesce(colorful, getattr(parent, "colorful", False))),
            # Parent/children wiring
            "parent": parent,
            "children": {},
            "default": Unset,
        }
        _process_source(cls, metadata)
        _process_strings(cls, metadata)

        if parent and metadata["version"] is not None:
            raise ValueError(f"{cls.__typename__} 'version' can only be declared by a root command")

        self = super().__new__(cls)
        self._callback = metadata.pop("callback")
        self._validator = Unset
        self._sealed = False
        for name, object in metadata.items():
            setattr(self, "_" + name, coalesce(object))
        _attach_to_parent(self, self.parent, default)
        return self

    def __call__(self, *args, **kwargs):
        """
        Call the wrapped callback directly, bypassing argv parsing.
        """
        return self._callback(*args, **kwargs)

    def __group__(self):
        """
        Introspection hook: embed this command's own specs as a shared group.
        """
        return Group(self)

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create or attach a subcommand under this command.

        Thin wrapper around the top-level command(...) factory that injects the
        current command as the parent:
        - Callback mode: self.command(callback, ...) -> Command
        - Decorator mode: @self.command(...)
        """
        return command(source, self, *args, **kwargs)

    def validator(self, hook, /):
        """
        Register the validation hook of this command (once).

        Contract
        - hook(namespace) receives this node's own decoded values and may mutate them.
        - returning None/True accepts; returning anything else, or raising, rejects.

        Returns
        - The same callable, enabling decorator-style usage: @cmd.validator
        """
        if not callable(hook):
            raise TypeError(f"{type(self).__typename__} validator must be callable")
        if self._validator is not Unset:
            raise TypeError(f"{type(self).__typename__} validator cannot be overridden")
        self._validator = hook
        return hook

    def __validate__(self, namespace, /):
        if self._validator is Unset:
            return None
        return self._validator(namespace)

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this command's runtime flags (see faults.trigger).

        The fault keeps the command it was attributed to; this command is only
        used when the fault carries none.
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        options = {"shell": self.shell, "fancy": self.fancy, "colorful": self.colorful} | options
        if isinstance(fault, CleanExit):
            return trigger(fault, **options)
        if fault.options.get("command") is None:
            options["command"] = self
        trigger(fault, **options)

    def parse(self, argv=Unset, /):
        """
        Parse argv starting at this command and return the Invocation of the resolved node.

        Steps
        - tokenize argv and walk the tree from this node (Resolver);
        - report missing required values once the walk is over;
        - run the validation hooks root to leaf.

        Raises
        - ParsingError (any subclass) on failure.
        - HelpRequest / VersionRequest when a built-in meta option is hit.
        """
        self.root._sealed = True
        match Resolver(self, _prompt(argv)).resolve():
            case Failed(fault):
                raise fault
            case Resolved(path):
                return Invocation(validate(path))
        raise RuntimeError("unreachable")

    def parse_as_root(self, argv=Unset, /):
        """
        Parse argv starting at the root of this command's tree.
        """
        return self.root.parse(argv)

    def helptext(self, /, width=80):
        """
        Return the plain-text help screen of this command.
        """
        return helptext(self, width=width)

    def usage(self):
        """
        Return the usage synopsis of this command.
        """
        return usage(self)

    def message(self, fault=Unset, /):
        """
        Return the text a CLI would print for a fault or request.

        - Unset or a Command: the help screen of that command (this one by default).
        - HelpRequest: the help screen of the requested node.
        - VersionRequest: the root's version string.
        - ParsingError: the single-line error description.
        """
        match fault:
            case UnsetType():
                return helptext(self)
            case Command():
                return helptext(fault)
            case HelpRequest() | VersionRequest():
                return str(fault)
            case ParsingError():
                return fault.message
        raise TypeError("message() argument must be a command, a clean exit or a parsing error")

    def render(self):
        """
        Return the help screen of this command as a rich renderable.
        """
        return render(self, fancy=self.fancy, colorful=self.colorful)

    def main(self, argv=Unset, /):
        """
        Process entry point: parse, then run the resolved command.

        - on failure, print the usage and the diagnostic to stderr and exit 1;
        - on help/version requests, print to stdout and exit 0;
        - otherwise, run the resolved command and return its result.
        """
        try:
            invocation = self.parse(argv)
        except (ParsingError, CleanExit) as fault:
            self.trigger(fault, shell=True)
            raise RuntimeError("unreachable") from None
        return invocation.run()

    def __invoke__(self, prompt=Unset):
        """
        Execute this command with a token stream.

        - shell commands behave like main(): diagnostics are printed and the process exits.
        - other commands raise the fault (ParsingError/CleanExit) to the caller.
        """
        if self.shell:
            return self.main(prompt)
        return self.parse(prompt).run()


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator to build it later.

    Invocation modes
    - Direct callback:
        cmd = command(func, ..., name="x", ...)
    - Decorator:
        @command(name="x", ...)
        def func(...): ...

    Parameters
    - source: Unset | Callable
      When Unset, a decorator is returned. Otherwise a Command is created.
    - *args, **kwargs: forwarded to Command.__new__ (parent, metadata, runtime flags).
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source) or isinstance(source, Command):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands or callables.

    Parameters
    - object: an instance providing __invoke__(prompt) or a plain callable.
    - prompt: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.

    Behavior
    - If 'object' implements __invoke__, call it with prompt and return its result.
    - If 'object' is a plain callable, wrap it as a Command and then invoke.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    if callable(object):
        return invoke(command(object), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "command",
    "invoke",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del CommandType
