"""
Argotree parse results: namespaces, bound paths and invocations.

- Namespace: attribute bag holding one node's decoded values (groups nest as
  Namespaces). A namespace may fall back to an ancestor's namespace for
  attributes it does not hold itself.
- Binding: one (command, namespace) step of a bound path.
- Invocation: the outcome of a successful parse; the resolved leaf, the bound
  path root to leaf, and a run() that calls the leaf's callback.

Nothing here keeps a reference back into the engine: once parse() returns,
the invocation belongs to the caller.
"""
from typing import NamedTuple

from .arguments import Flag, Group


class Namespace:
    """
    Mutable attribute bag with optional ancestor fallback.

    - vars(namespace) / iteration / `in` only see the namespace's own values.
    - attribute reads that miss fall back to the ancestor chain (deepest first).
    """
    __slots__ = ("__dict__", "_ancestor")

    def __init__(self, values=(), /, ancestor=None):
        self._ancestor = ancestor
        self.__dict__.update(values)

    def __getattr__(self, name):
        if name == "_ancestor" or name.startswith("__") or self._ancestor is None:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
        return getattr(self._ancestor, name)

    def __contains__(self, name):
        return name in self.__dict__

    def __iter__(self):
        return iter(self.__dict__)

    def __eq__(self, other):
        if not isinstance(other, Namespace):
            return NotImplemented
        return vars(self) == vars(other)

    __hash__ = None

    def __repr__(self):
        return "namespace(%s)" % ", ".join("%s=%r" % item for item in self.__dict__.items())

    def __rich_repr__(self):
        yield from self.__dict__.items()


def populate(layout, values, /):
    """
    Build a Namespace for a parameter layout from per-spec values.

    Unbound specs take their initial value (default, empty list, False, 0 or None);
    list values are copied so namespaces never share mutable state with specs.
    """
    namespace = {}
    for key, spec in layout.items():
        if isinstance(spec, Group):
            namespace[key] = populate(spec.members, values)
            continue
        value = values[spec] if spec in values else spec.initial
        namespace[key] = list(value) if isinstance(value, list) else value
    return Namespace(namespace)


class Binding(NamedTuple):
    command: object
    namespace: Namespace


class Invocation:
    """
    A fully decoded command, ready to run.

    Attributes
    - command: the resolved (leaf) command.
    - path: tuple[Binding, ...] root to leaf.
    - namespace: the leaf's Namespace; lookups fall back to ancestors.
    """

    def __init__(self, path, /):
        self._path = tuple(path)
        ancestor = None
        for binding in self._path:
            binding.namespace._ancestor = ancestor
            ancestor = binding.namespace

    @property
    def path(self):
        return self._path

    @property
    def command(self):
        return self._path[-1].command

    @property
    def namespace(self):
        return self._path[-1].namespace

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.namespace, name)

    def __repr__(self):
        return "invocation(command=%r, namespace=%r)" % (" ".join(step.command.name for step in self._path), self.namespace)

    def arguments(self):
        """
        Return (args, kwargs) for the leaf callback.

        Arguments, options and groups are passed positionally in declaration
        order; flags are passed by keyword.
        """
        args = ()
        kwargs = {}
        for key, spec in self.command.layout.items():
            value = getattr(self.namespace, key)
            if isinstance(spec, Flag):
                kwargs[key] = value
            else:
                args += (value,)
        return args, kwargs

    def run(self):
        """
        Call the leaf command's callback with the decoded values and return its result.
        """
        args, kwargs = self.arguments()
        return self.command(*args, **kwargs)

    __call__ = run


__all__ = (
    "Namespace",
    "Binding",
    "Invocation",
    "populate",
)
