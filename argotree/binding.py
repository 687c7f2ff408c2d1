"""
Argotree matcher/binder: consume tokens against one command node's specs.

A Binder is created by the resolver for every node it visits during one parse.
It binds options and flags as they come, queues bare tokens for the node's
positionals, and stops (leaving the token in place) when the resolver has to
decide what happens next:

- a bare token at a node that has children (a subcommand name, or a reason to
  descend into the default child),
- an option-like token no spec of this node recognizes.

Values are written into a mapping shared across the whole path and keyed by
spec identity, so a spec embedded at several levels through a group receives
its value from whichever level binds it (the deepest binding wins).

Name resolution
- exact match first (short and long names, built-ins included),
- then an unambiguous prefix of a long name ("--ver" for "--verbose"); several
  distinct specs sharing the prefix is an AmbiguousAbbreviationError,
- single-dash tokens try the whole token first ("-long"), then expand as a
  cluster ("-abc" is "-a -b -c"; an option letter takes the rest as its value).
"""
import difflib

from .arguments import Flag
from .faults import *
from .tokens import TokenKind
from .utils import *

HELP = Flag("-h", "--help", descr="Show help information.").__bind__("help")
VERSION = Flag("--version", descr="Show the version.").__bind__("version")


def builtins(command, /):
    """
    Return the active built-in meta options of a node as [(spec, names)].

    - -h/--help is always available; --version only when the root declares a version.
    - each built-in name is dropped at a node whose own specs declare that exact name.
    """
    claimed = {name for spec in command.specs for name in getattr(spec, "names", ())}
    active = []
    for spec in (HELP, VERSION) if command.root.version else (HELP,):
        if names := tuple(name for name in spec.names if name not in claimed):
            active.append((spec, names))
    return active


class Binder:
    """
    Per-node, per-parse token consumer.

    Parameters
    - command: the node whose specs are active.
    - values: dict[spec → value] shared along the path (mutated in place).
    - tokens: deque[Token] shared along the path (consumed from the left).
    """

    def __init__(self, command, values, tokens, /):
        self.command = command
        self.values = values
        self.tokens = tokens
        self.pending = []
        self.table = {}
        for spec in command.specs:
            for name in getattr(spec, "names", ()):
                self.table[name] = spec
        for spec, names in builtins(command):
            for name in names:
                self.table[name] = spec
        self.positionals = [spec for spec in command.specs if spec.kind == "positional"]

    @property
    def route(self):
        return " ".join(step.name for step in self.command.path)

    def fault(self, cls, message, /, **data):
        """
        Build a fault of the given class attributed to this node.
        """
        return cls(message, command=self.command, **data)

    def bind(self):
        """
        Consume tokens until exhaustion or until the resolver must decide.

        Returns
        - None: every token was consumed.
        - Token: a bare token left in place at a node with children.
        - UnrecognizedOptionError: an unknown option-like token left in place.
        """
        while self.tokens:
            token = self.tokens[0]
            match token.kind:
                case TokenKind.TERMINATOR:
                    self.tokens.popleft()
                case TokenKind.FORCED:
                    self.pending.append(self.tokens.popleft())
                case TokenKind.VALUE:
                    if self.command.children:
                        return token
                    self.pending.append(self.tokens.popleft())
                case TokenKind.LONG | TokenKind.SHORT:
                    try:
                        self.option(token)
                    except UnrecognizedOptionError as fault:
                        if token.numeric and self.hungry():
                            self.pending.append(self.tokens.popleft())
                            continue
                        return fault
        return None

    def hungry(self):
        """
        True when a positional of this node can still take another token.
        """
        capacity = 0
        for spec in self.positionals:
            if (high := spec.bounds[1]) is None:
                return True
            capacity += high
        return len(self.pending) < capacity

    def lookup(self, name, token, /):
        """
        Resolve an option name: exact, then unambiguous long prefix.

        Returns the spec, or Unset when nothing matches.
        """
        if (spec := self.table.get(name)) is not None:
            return spec
        if not name.startswith("--") or len(name) < 3:
            return Unset

        candidates = [candidate for candidate in self.table if candidate.startswith("--") and candidate.startswith(name)]
        specs = []
        for candidate in candidates:
            if self.table[candidate] not in specs:
                specs.append(self.table[candidate])
        match len(specs):
            case 0:
                return Unset
            case 1:
                return specs[0]
        raise self.fault(
            AmbiguousAbbreviationError,
            "ambiguous abbreviation %r at %s position (matches %s)" % (
                name, ordinal(token.index), ", ".join(map(repr, candidates))
            ),
            hint="spell out one of %s" % ", ".join(candidates),
            input=name,
            index=token.index,
            candidates=tuple(candidates),
        )

    def unrecognized(self, name, token, /):
        suggestions = difflib.get_close_matches(name, self.table.keys(), 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], self.route)
        except IndexError:
            hint = "try '%s --help' to see all available options" % self.route
        return self.fault(
            UnrecognizedOptionError,
            "%r is not a recognized option for %s %r at %s position" % (
                name, "subcommand" if self.command.parent else "command", self.command.name, ordinal(token.index)
            ),
            hint=hint,
            input=name,
            index=token.index,
            suggestions=tuple(suggestions),
        )

    def option(self, token, /):
        """
        Bind one LONG/SHORT token (and the values it consumes).

        Raises UnrecognizedOptionError without consuming anything when no spec
        matches; every other failure is raised after the token was consumed.
        """
        if (spec := self.lookup(token.name, token)) is not Unset:
            self.tokens.popleft()
            return self.apply(spec, token, token.name, token.value)

        if token.kind is TokenKind.LONG or token.numeric:
            raise self.unrecognized(token.name, token)

        # cluster expansion, planned fully before anything is consumed
        plan = []
        if not (letters := token.name[1:]):
            raise self.unrecognized(token.name, token)
        for offset, letter in enumerate(letters):
            if (spec := self.table.get("-" + letter)) is None:
                raise self.unrecognized(token.name if not plan else "-" + letter, token)
            if isinstance(spec, Flag):
                plan.append((spec, "-" + letter, Unset))
                continue
            rest = letters[offset + 1:]
            if rest and token.value is not Unset:
                rest = "%s=%s" % (rest, token.value)
            plan.append((spec, "-" + letter, rest or token.value))
            break
        else:
            if token.value is not Unset:
                spec, name, _ = plan[-1]
                plan[-1] = (spec, name, token.value)

        self.tokens.popleft()
        for spec, name, value in plan:
            self.apply(spec, token, name, value)

    def apply(self, spec, token, name, inline, /):
        if spec is HELP:
            raise HelpRequest(self.command)
        if spec is VERSION:
            raise VersionRequest(self.command)

        if spec.deprecated:
            self.warn(spec, name, token)

        if isinstance(spec, Flag):
            if inline is not Unset:
                raise self.fault(
                    FlagAssignmentError,
                    "flag %r at %s position cannot have an inline value" % (name, ordinal(token.index)),
                    hint="remove everything from '=' (for example: %s)" % name,
                    input=name,
                    index=token.index,
                    argument=spec,
                )
            if spec.counting:
                self.values[spec] = self.values.get(spec, 0) + 1
            else:
                self.values[spec] = True
            return

        low, high = spec.bounds
        raws = [] if inline is Unset else [(inline, token)]
        while self.tokens and (high is None or len(raws) < high):
            following = self.tokens[0]
            if not (following.kind is TokenKind.VALUE or following.numeric):
                break
            if len(raws) >= low and following.text in self.command.children:
                break
            raws.append((following.text, self.tokens.popleft()))

        if len(raws) < low:
            match spec.nargs:
                case "+":
                    expected = "at least one value"
                case int() as count if count > 1:
                    expected = "%d values" % count
                case _:
                    expected = "a value"
            raise self.fault(
                MissingValueError,
                "option %r at %s position expects %s" % (name, ordinal(token.index), expected),
                hint="pass %s after it (for example: %s <%s>)" % (expected, name, spec.metavar or spec.key),
                input=name,
                index=token.index,
                argument=spec,
            )

        converted = [self.convert(spec, name, raw, origin) for raw, origin in raws]
        if high is None:
            self.values[spec] = list(self.values.get(spec, ())) + converted
        elif high == 1:
            self.values[spec] = converted[0] if converted else coalesce(spec.default)
        else:
            self.values[spec] = converted

    def convert(self, spec, name, raw, token, /):
        """
        Convert one raw string for a spec, checking choices afterwards.
        """
        try:
            value = spec.convert(raw)
        except (TypeError, ValueError) as error:
            raise self.fault(
                ConversionError,
                "invalid value %r for %r at %s position (expected %s)" % (raw, name, ordinal(token.index), spec.expected),
                hint="pass %s" % spec.expected,
                raw=raw,
                target=name,
                expected=spec.expected,
                index=token.index,
                argument=spec,
                error=error,
            ) from error
        if spec.choices and value not in spec.choices and raw not in spec.choices:
            raise self.fault(
                InvalidChoiceError,
                "invalid choice %r for %r at %s position" % (raw, name, ordinal(token.index)),
                hint="choose %s" % spec.expected,
                raw=raw,
                target=name,
                expected=spec.expected,
                index=token.index,
                argument=spec,
            )
        return value

    def warn(self, spec, name, token, /):
        trigger(
            DeprecatedArgumentWarning(
                "%s %r at %s position is deprecated" % (spec.kind, name, ordinal(token.index)),
                hint="check '%s --help' for a replacement" % self.route,
                input=name,
                index=token.index,
                argument=spec,
            ),
            command=self.command,
            shell=self.command.shell,
            fancy=self.command.fancy,
            colorful=self.command.colorful,
        )

    def finish(self):
        """
        Distribute the queued bare tokens over the node's positionals, left to right.

        - required arities are satisfied first;
        - optional specs ("?", or specs with a default) take a token while surplus remains;
          exactly-n specs take all n or nothing;
        - the unbounded spec (always last) takes the rest.

        Raises MissingValueError when tokens run short and UnexpectedArgumentError
        for the first token left over.
        """
        pending = list(self.pending)
        needed = sum(spec.bounds[0] for spec in self.positionals if spec.required)

        if len(pending) < needed:
            available = len(pending)
            for spec in self.positionals:
                if not spec.required:
                    continue
                if available < spec.bounds[0]:
                    raise self.fault(
                        MissingValueError,
                        "missing argument <%s> after %s position" % (spec.metavar, ordinal(pending[-1].index))
                        if pending else "missing argument <%s>" % spec.metavar,
                        hint="run '%s --help' to see the expected arguments" % self.route,
                        argument=spec,
                    )
                available -= spec.bounds[0]

        surplus = len(pending) - needed
        for spec in self.positionals:
            low, high = spec.bounds
            take = low if spec.required else 0
            if high is None:
                take += surplus
                surplus = 0
            elif spec.required or high == 1 or surplus >= high:
                extra = min(surplus, high - take)
                take += extra
                surplus -= extra
            chunk, pending = pending[:take], pending[take:]
            if not chunk:
                continue
            if spec.deprecated:
                self.warn(spec, "<%s>" % spec.metavar, chunk[0])
            converted = [self.convert(spec, "<%s>" % spec.metavar, token.text, token) for token in chunk]
            if high == 1:
                self.values[spec] = converted[0]
            else:
                self.values[spec] = converted

        if pending:
            raise self.fault(
                UnexpectedArgumentError,
                "unexpected argument %r at %s position" % (pending[0].text, ordinal(pending[0].index)),
                hint="remove it, or run '%s --help' to see the expected arguments" % self.route,
                input=pending[0].text,
                index=pending[0].index,
            )


__all__ = (
    "HELP",
    "VERSION",
    "builtins",
    "Binder",
)
