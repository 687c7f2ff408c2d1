r"""
Argotree parameter specifications.

Overview
- Specs
  • Argument[_T]: positional, value-bearing parameter (fixed, optional or variadic arity).
  • Option[_T]: named, value-bearing parameter with one or more aliases (e.g., -o/--output).
  • Flag: named, presence-only switch (boolean, or counting when repeated), e.g., -v/--verbose.
  • Group: a shared option group; a reusable bundle of specs embedded into several commands.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes selected
    fields via read-only properties declared in __introspectable__.
  • Supports* hooks (__argument__, __option__, __flag__, __group__) let any object stand
    in for a spec inside a command signature.

Metadata (sanitized on construction)
- Shared (all specs)
  • descr: Unset | str | Text (short help), non-empty when provided.
  • hidden: bool (suppresses from help).
  • deprecated: bool (marked and styled accordingly, warns when used).
- Argument/Option only (value-bearing)
  • metavar: Unset | str (label in help, defaults to the parameter key).
  • type: Callable (converter); enum.Enum subclasses convert by value, then by name.
  • nargs: Unset | "?" | "*" | "+" | int (>=1).
  • default: any value; Unset means "no default" (required for exactly-one/exactly-n).
  • choices: Iterable (duplicates rejected unless a Set).
- Named (Option/Flag)
  • names: Iterable[str] validated as shell-style identifiers; duplicates rejected.
    When empty, the long name is derived from the parameter key once the spec is bound.
  • short: bool, adds "-<first letter of key>" to the derived names.
- Flag only
  • counting: bool, repeated occurrences increment an integer instead of setting True.

Keys
- A spec learns its key (the parameter name of the declaring callable) the first time a
  command or group collects it (__bind__). The same spec object may be shared through
  groups; it can never be re-bound under a different key.

Quick example:
    >>> from argotree.arguments import Argument, Option, Flag
    >>> def math(
    ...     operands=Argument(type=int, nargs="*"),
    ...     /,
    ...     operation=Option(type=Operation, default=Operation.ADD),
    ...     *,
    ...     verbose=Flag(short=True),
    ... ): ...

Public API
- Classes: Argument, Option, Flag, Group
"""
import enum
import functools
import inspect
import operator
import re
from collections.abc import Iterable, Mapping, Set
from inspect import Parameter

from rich.text import Text

from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages and help output.
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
            Return a concise, stable representation with key metadata.

            Example
            - option(key='verbose', names=('-v', '--verbose'), ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield a sequence of (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate shared spec metadata ('descr').

    - descr: optional short description. If omitted (Unset), it becomes None.
      If provided, it must be a non-empty string after trimming.

    Raises
    - TypeError: if 'descr' is not a string, a Text, or Unset.
    - ValueError: if 'descr' is a string but empty after trimming.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate and normalize metadata for named specs (Option, Flag).

    - names: optional. Each name must be a non-empty string matching a shell-style
      option pattern ("-x", "-long", "--long", "--long-name"). Unicode letters are
      allowed; underscores and leading digits are not. Duplicates are rejected.
      Declaration order is preserved.

    Name format regex: r"--?[^\W\d_](-?[^\W_]+)*"
    """
    names = []
    if isinstance(metadata["names"], str) or not isinstance(metadata["names"], Iterable):
        raise TypeError(f"{cls.__typename__} names must be an iterable of strings")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} names must be valid shell-style option names (unicodes are allowed)")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)

    metadata["names"] = tuple(names)


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate and normalize metadata for value-bearing specs (Argument, Option).

    - metavar: must be Unset or a non-empty string after trimming.
    - type: must be callable (converter). Enum subclasses are accepted as-is.
    - nargs: must be Unset | "?" | "*" | "+" | int (>= 1).
    - choices: must be iterable. If not a Set, duplicates are rejected and
      the collection is normalized to a tuple.

    Explicitly not responsible for
    - default: it may be any value (including None); Unset means "not provided".
    """
    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = metavar

    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    if isinstance(nargs := metadata["nargs"], bool) or not isinstance(nargs, str | int | Unset):
        raise TypeError(f"{cls.__typename__} 'nargs' must be a string or an integer")
    if isinstance(nargs, str) and nargs not in ("?", "*", "+"):
        raise ValueError(f"{cls.__typename__} 'nargs' must be one of '?', '*', or '+'")
    if isinstance(nargs, int) and nargs < 1:
        raise ValueError(f"{cls.__typename__} 'nargs' must be a positive integer")

    if isinstance(choices := metadata["choices"], str) or not isinstance(choices, Iterable):
        raise TypeError(f"{cls.__typename__} 'choices' must be iterable")
    if not isinstance(choices, Set):
        sanitized = []
        for choice in choices:
            if choice in sanitized:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        choices = tuple(sanitized)
    metadata["choices"] = choices


class Spec:
    """
    Shared behavior of every parameter spec: key binding, arity and help helpers.

    Subclasses mirror their sanitized metadata into private fields and expose
    them through read-only properties (see ArgumentType).
    """
    kind = Unset

    @property
    def key(self):
        """
        The parameter name this spec was declared under (Unset until collected).
        """
        return self._key

    @property
    def bounds(self):
        """
        Return (minimum, maximum) tokens consumed per occurrence; maximum is None when unbounded.
        """
        match getattr(self, "nargs", 0):
            case 0:
                return 0, 0
            case UnsetType():
                return 1, 1
            case "?":
                return 0, 1
            case "*":
                return 0, None
            case "+":
                return 1, None
            case int() as count:
                return count, count
        raise RuntimeError("unreachable")

    @property
    def unbounded(self):
        return self.bounds[1] is None

    @property
    def required(self):
        """
        True when the spec must receive a value: positive minimum arity and no default.
        """
        return self.bounds[0] > 0 and getattr(self, "_default", None) is Unset

    @property
    def initial(self):
        """
        Value used when the spec is never bound (and is not required).
        """
        if (default := getattr(self, "_default", Unset)) is not Unset:
            return default
        if self.unbounded:
            return []
        return None

    @property
    def label(self):
        """
        The preferred user-facing name: the first long name, else the first name, else the metavar.
        """
        names = getattr(self, "names", ())
        for name in names:
            if name.startswith("--"):
                return name
        if names:
            return names[0]
        return "<%s>" % self.metavar

    @property
    def expected(self):
        """
        Short description of the accepted values, used in conversion diagnostics.
        """
        if choices := getattr(self, "choices", ()):
            return "one of %s" % ", ".join(map(repr, map(_plain, choices)))
        type = getattr(self, "_type", str)
        if inspect.isclass(type) and issubclass(type, enum.Enum):
            return "one of %s" % ", ".join(repr(member.value) for member in type)
        return getattr(type, "__name__", "value")

    def convert(self, raw, /):
        """
        Convert one raw token with the spec's converter; Enum types accept values or names.
        """
        type = self._type
        if inspect.isclass(type) and issubclass(type, enum.Enum):
            try:
                return type(raw)
            except ValueError:
                try:
                    return type[raw]
                except KeyError:
                    raise ValueError("%r is not a valid %s" % (raw, type.__name__)) from None
        return type(raw)

    def __bind__(self, key, /):
        """
        Attach the declaring parameter name; derive names for named specs the first time.

        Raises
        - TypeError: when the spec is already bound under another key.
        """
        if self._key is not Unset:
            if self._key != key:
                raise TypeError(f"{type(self).__typename__} is already bound to parameter {self._key!r}")
            return self
        self._key = key
        if self.kind == "positional":
            self._metavar = coalesce(self._metavar, kebab(key))
            return self
        names = list(self._names)
        if getattr(self, "_short", False) and not any(not name.startswith("--") and len(name) == 2 for name in names):
            names.insert(0, "-" + kebab(key)[0])
        if not self._names:
            names.append("--" + kebab(key))
        self._names = tuple(names)
        return self


def _plain(choice):
    return choice.value if isinstance(choice, enum.Enum) else choice


class Argument[_T](Spec, metaclass=ArgumentType):
    """
    Positional, value-bearing parameter specification.

    Argument[_T] declares how a positional value is parsed, converted, validated,
    and rendered in help. Positionals are bound by order among the tokens left
    over once every option of the command has been resolved.

    Highlights
    - Arity: exactly-one (default), zero-or-one ("?"), zero-or-more ("*"),
      one-or-more ("+"), and exactly-n (int >= 1).
    - At most one unbounded positional per command, and it must be the last.
    """
    kind = "positional"

    __introspectable__ = (
        "metavar",
        "type",
        "nargs",
        "default",
        "choices",
        "descr",
        "hidden",
        "deprecated",
    )

    def __new__(
            cls,
            metavar=Unset,
            /,
            type=str,
            nargs=Unset,
            default=Unset,
            choices=(),
            descr=Unset,
            *,
            hidden=False,
            deprecated=False
    ):
        metadata = {
            "metavar": metavar,
            "type": type,
            "nargs": nargs,
            "default": default,
            "choices": choices,
            "descr": descr,
            "hidden": bool(hidden),
            "deprecated": bool(deprecated),
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_parametric_metadata(cls, metadata)

        self = super().__new__(cls)
        self._key = Unset
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        if self.metavar and self.choices:
            raise TypeError(f"{cls.__typename__} cannot have both 'metavar' and 'choices'")
        return self

    def __argument__(self):
        """
        Introspection hook: identify this spec as an Argument.
        """
        return self


class Option[_T](Spec, metaclass=ArgumentType):
    """
    Named, value-bearing option specification.

    Option[_T] declares how a named option (e.g., -o/--output) is parsed,
    converted, validated, and rendered in help.

    Highlights
    - Aliases via 'names' (e.g., "-o", "--output", "-output"); derived from the
      parameter key when omitted ("base_flag" → "--base-flag").
    - Arity: exactly-one (default), zero-or-one ("?"), zero-or-more ("*"),
      one-or-more ("+"), exactly-n (int >= 1).
    - Inline form '--name=value' supplies the first value.
    - Unbounded options accumulate values across repeated occurrences; the
      others keep the last occurrence.
    """
    kind = "option"

    __introspectable__ = (
        "names",
        "metavar",
        "type",
        "nargs",
        "default",
        "choices",
        "descr",
        "hidden",
        "deprecated",
    )

    def __new__(
            cls,
            *names,
            short=False,
            metavar=Unset,
            type=str,
            nargs=Unset,
            default=Unset,
            choices=(),
            descr=Unset,
            hidden=False,
            deprecated=False
    ):
        metadata = {
            "names": names,
            "short": bool(short),
            "metavar": metavar,
            "type": type,
            "nargs": nargs,
            "default": default,
            "choices": choices,
            "descr": descr,
            "hidden": bool(hidden),
            "deprecated": bool(deprecated),
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        _sanitize_parametric_metadata(cls, metadata)

        self = super().__new__(cls)
        self._key = Unset
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        if self.metavar and self.choices:
            raise TypeError(f"{cls.__typename__} cannot have both 'metavar' and 'choices'")
        return self

    def __option__(self):
        """
        Introspection hook: identify this spec as an Option.
        """
        return self


class Flag(Spec, metaclass=ArgumentType):
    """
    Named, presence-only switch specification.

    Unlike Argument/Option, a Flag does not carry a payload value; its presence
    is the signal. Plain flags become True when present (False otherwise);
    counting flags become the number of occurrences (0 otherwise).
    """
    kind = "flag"

    __introspectable__ = (
        "names",
        "counting",
        "descr",
        "hidden",
        "deprecated",
    )

    def __new__(
            cls,
            *names,
            short=False,
            counting=False,
            descr=Unset,
            hidden=False,
            deprecated=False
    ):
        metadata = {
            "names": names,
            "short": bool(short),
            "counting": bool(counting),
            "descr": descr,
            "hidden": bool(hidden),
            "deprecated": bool(deprecated),
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)

        self = super().__new__(cls)
        self._key = Unset
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def initial(self):
        return 0 if self.counting else False

    def __flag__(self):
        """
        Introspection hook: identify this spec as a Flag.
        """
        return self


def resolve(object, /, name="parameter"):
    """
    Return the concrete spec (Argument | Option | Flag | Group) behind a Supports* object.

    Raises
    - TypeError: when the object advertises none or several spec hooks, or a hook
      returns an object of the wrong kind.
    """
    hooks = (
        ("__argument__", Argument),
        ("__option__", Option),
        ("__flag__", Flag),
        ("__group__", Group),
    )
    found = [(hook, kind) for hook, kind in hooks if callable(getattr(object, hook, None))]
    if len(found) != 1:
        raise TypeError(f"parameter {name!r} default must be argument-resoluble")
    (hook, kind), = found
    if not isinstance(spec := getattr(object, hook)(), kind):
        raise TypeError(f"{hook}() non-{kind.__typename__} returned")
    return spec


def collect(callback, /, owner="command"):
    """
    Introspect a callable's signature and return its parameter layout {key: spec}.

    Placement rules (kept strict so the callable can later be called with the
    decoded values in the same shape):
    - Argument must be positional-only.
    - Option and Group must be standard (positional-or-keyword).
    - Flag must be keyword-only.

    Every parameter needs a spec-resoluble default. Specs are bound to their keys.

    Errors
    - TypeError/ValueError on non-callable or non-inspectable callables, missing
      defaults, or misplaced specs.
    """
    try:
        signature = inspect.signature(callback)
    except TypeError:
        raise TypeError(f"{owner} 'callback' must be callable") from None
    except ValueError:
        raise ValueError(f"{owner} 'callback' must be an inspectable callable") from None

    layout = {}
    for name, parameter in signature.parameters.items():
        if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
            raise TypeError(f"{owner} 'callback' parameter {name!r} cannot be variadic")
        if parameter.default is Parameter.empty:
            raise TypeError(f"{owner} 'callback' parameter {name!r} must have a default")

        spec = resolve(parameter.default, name)

        if isinstance(spec, Argument) and parameter.kind is not Parameter.POSITIONAL_ONLY:
            raise TypeError(f"{owner} 'callback' argument at parameter {name!r}, parameter must be positional-only")
        if isinstance(spec, Option | Group) and parameter.kind is not Parameter.POSITIONAL_OR_KEYWORD:
            raise TypeError(f"{owner} 'callback' {spec.kind} at parameter {name!r}, parameter must be standard")
        if isinstance(spec, Flag) and parameter.kind is not Parameter.KEYWORD_ONLY:
            raise TypeError(f"{owner} 'callback' flag at parameter {name!r}, parameter must be keyword-only")

        layout[name] = spec.__bind__(name)
    return layout


class Group(metaclass=ArgumentType):
    """
    Shared option group: a reusable bundle of specs embedded into several commands.

    Sources
    - a Command: the group holds the command's own declared specs (never its children).
    - a callable: the group holds the specs found in its signature (see collect()).
    - a mapping {key: spec}: used as-is.

    The group's value inside a command is a Namespace keyed by the group's
    parameter names. Groups nest; flatten() yields their leaf specs in
    declaration order, recursively.
    """
    kind = "group"

    __introspectable__ = (
        "key",
        "members",
        "descr",
    )
    __displayable__ = (
        "key",
        "members",
    )

    def __new__(cls, source, /, descr=Unset):
        metadata = {"descr": descr}
        _sanitize_metadata(cls, metadata)

        if isinstance(layout := getattr(source, "layout", Unset), Mapping):
            members = dict(layout)
        elif isinstance(source, Mapping):
            members = {}
            for name, object in source.items():
                if not isinstance(name, str) or not name.isidentifier():
                    raise TypeError(f"{cls.__typename__} keys must be identifiers")
                members[name] = resolve(object, name).__bind__(name)
        elif callable(source):
            members = collect(source, cls.__typename__)
        else:
            raise TypeError(f"{cls.__typename__} source must be a command, a callable or a mapping")

        self = super().__new__(cls)
        self._key = Unset
        self._source = source
        self._members = members
        self._descr = metadata["descr"]
        return self

    def flatten(self):
        """
        Yield the leaf specs of this group (nested groups expanded), in declaration order.
        """
        for spec in self._members.values():
            if isinstance(spec, Group):
                yield from spec.flatten()
            else:
                yield spec

    def __bind__(self, key, /):
        if self._key is not Unset and self._key != key:
            # the same group object may be embedded under one key only
            raise TypeError(f"{type(self).__typename__} is already bound to parameter {self._key!r}")
        self._key = key
        return self

    def __group__(self):
        """
        Introspection hook: identify this object as a Group.
        """
        return self


__all__ = (
    # Classes (specifications)
    "Argument",
    "Option",
    "Flag",
    "Group",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
