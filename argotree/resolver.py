"""
Argotree subcommand resolver: walk the command tree for one argv.

The resolver is a small state machine over the command tree:

- AtNode(command): bind the node's specs (its own plus the group-embedded ones)
  with a fresh Binder, then decide where to go next;
- Resolved(path): the addressed node was found and every value is decoded;
- Failed(fault): a ParsingError (or a HelpRequest/VersionRequest) ended the walk.

Transitions out of AtNode
- a bare token naming a child (exact, else unambiguous prefix) → consume it, descend;
- a bare token "help" where no child claims that name → help for the named descendant;
- a bare token naming nothing, or an option this node does not know → descend into
  the default child without consuming, or fail;
- no tokens left → descend into the default child, or resolve here.

Values bound at any level live in one mapping keyed by spec identity, so a spec
shared through a group flows between levels. Missing required values are only
reported once the walk is over, attributed to the deepest node declaring them.
"""
import difflib
from collections import deque
from typing import NamedTuple

from .binding import Binder
from .faults import *
from .invocations import Binding, populate
from .tokens import Token, TokenKind, tokenize
from .utils import *


class AtNode(NamedTuple):
    command: object


class Resolved(NamedTuple):
    path: tuple


class Failed(NamedTuple):
    fault: Exception


class Resolver:
    """
    Per-parse tree walker.

    Parameters
    - command: the node the walk starts from (usually the root).
    - argv: iterable of raw strings.
    """

    def __init__(self, command, argv, /):
        self.start = command
        self.tokens = deque(tokenize(argv))
        self.values = {}
        self.visited = []

    def resolve(self):
        """
        Run the state machine to a terminal state (Resolved or Failed).
        """
        state = AtNode(self.start)
        while isinstance(state, AtNode):
            try:
                state = self.step(state.command)
            except (ParsingError, CleanExit) as fault:
                state = Failed(fault)
        return state

    def step(self, command, /):
        self.visited.append(command)
        binder = Binder(command, self.values, self.tokens)

        match stop := binder.bind():
            case None:
                if command.default:
                    # forced tokens queued here belong to the default child
                    self.tokens.extendleft(reversed(binder.pending))
                    return AtNode(command.default)
                binder.finish()
                return self.complete()

            case Token():
                if child := self.child(command, stop):
                    self.tokens.popleft()
                    return AtNode(child)
                if command.default:
                    return AtNode(command.default)
                raise self.unknown(command, stop)

            case UnrecognizedOptionError():
                if command.default:
                    return AtNode(command.default)
                raise stop

        raise RuntimeError("unreachable")

    def child(self, command, token, /):
        """
        Match a bare token against the children of a node.

        Returns the child, or Unset. Raises HelpRequest for the built-in 'help'
        pseudo-subcommand and AmbiguousSubcommandError for an ambiguous prefix.
        """
        children = command.children
        if token.text in children:
            return children[token.text]

        if token.text == "help":
            self.tokens.popleft()
            raise HelpRequest(self.describe(command))

        # an empty token is a value, never a prefix
        candidates = [name for name in children if token.text and name.startswith(token.text)]
        match len(candidates):
            case 0:
                return Unset
            case 1:
                return children[candidates[0]]
        raise AmbiguousSubcommandError(
            "ambiguous subcommand %r at %s position (matches %s)" % (
                token.text, ordinal(token.index), ", ".join(map(repr, candidates))
            ),
            hint="spell out one of %s" % ", ".join(candidates),
            command=command,
            input=token.text,
            index=token.index,
            candidates=tuple(candidates),
        )

    def describe(self, command, /):
        """
        Walk the names following 'help' down to the node whose help is requested.
        """
        target = command
        while self.tokens and self.tokens[0].kind is TokenKind.VALUE and target.children:
            token = self.tokens[0]
            children = target.children
            if token.text in children:
                target = children[token.text]
            elif token.text and len(candidates := [name for name in children if name.startswith(token.text)]) == 1:
                target = children[candidates[0]]
            else:
                raise self.unknown(target, token)
            self.tokens.popleft()
        return target

    def unknown(self, command, token, /):
        route = " ".join(step.name for step in command.path)
        suggestions = difflib.get_close_matches(token.text, command.children.keys(), 5)
        try:
            hint = "did you mean %r? you can also run '%s help' to see all subcommands" % (suggestions[0], route)
        except IndexError:
            hint = "try '%s help' to see all available subcommands" % route
        return UnknownSubcommandError(
            "unknown subcommand %r for %r at %s position" % (token.text, route, ordinal(token.index)),
            hint=hint,
            command=command,
            input=token.text,
            index=token.index,
            suggestions=tuple(suggestions),
        )

    def complete(self):
        """
        Finish a walk: report missing values, then build the bound path.
        """
        for command in reversed(self.visited):
            for spec in command.specs:
                if spec.required and spec not in self.values:
                    raise self.missing(command, spec)

        return Resolved(tuple(
            Binding(command, populate(command.layout, self.values)) for command in self.visited
        ))

    def missing(self, command, spec, /):
        route = " ".join(step.name for step in command.path)
        if spec.kind == "positional":
            return MissingValueError(
                "missing argument <%s> for %r" % (spec.metavar, route),
                hint="run '%s --help' to see the expected arguments" % route,
                command=command,
                argument=spec,
            )
        return MissingValueError(
            "missing value for option %r required by %r" % (spec.label, route),
            hint="pass it as '%s <%s>'" % (spec.label, coalesce(spec.metavar, kebab(spec.key))),
            command=command,
            argument=spec,
        )


__all__ = (
    "AtNode",
    "Resolved",
    "Failed",
    "Resolver",
)
