"""
Argotree faults (parsing errors, clean exits, warnings) and their rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain so logs and searches stay predictable.
- ParsingError: base type of every binding/resolution/validation failure. Carries a
  message, a hint, the command node it is attributed to, and kind-specific data.
- CleanExit: HelpRequest / VersionRequest, the non-error short-circuits raised by the
  built-in meta options.
- CommandWarning: DeprecatedArgumentWarning, reported through the warnings module.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: every message includes the ordinal argv position
  ("at third position") so users can find the offending token at a glance.
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Shell layout
- A parsing error attributed to a command prints the usage line first, then a
  "[ prog — code | Title ]" header, the one-line message and a "→ hint" line.
  `str(fault)` stays the bare one-line message; the header and hint are extras
  of the rich rendering only.

Data access
- Every keyword given at construction is kept in a read-only `options` mapping and
  is also reachable as an attribute: `fault.candidates`, `fault.raw`, `fault.command`...
"""
import copy
import inspect
import sys
import warnings
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce, palette

console = Console(stderr=True)
stdout = Console()


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - routing (111 0x)
      • UNKNOWN_SUBCOMMAND, AMBIGUOUS_SUBCOMMAND
    - options and flags (111 1x)
      • UNRECOGNIZED_OPTION, FLAG_ASSIGNMENT, AMBIGUOUS_ABBREVIATION, MISSING_VALUE
    - positionals (111 2x)
      • UNEXPECTED_ARGUMENT, CONVERSION_FAILURE, INVALID_CHOICE
    - validation hooks (111 3x)
      • VALIDATION_FAILURE
    - warnings (121 xx)
      • DEPRECATED_ARGUMENT

    normalize() allows host remapping to custom labels while keeping codes stable.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_SUBCOMMAND          = 11102
    AMBIGUOUS_SUBCOMMAND        = 11103

    # --- option/flag errors (11xxx) ---
    UNRECOGNIZED_OPTION         = 11112
    FLAG_ASSIGNMENT             = 11113
    AMBIGUOUS_ABBREVIATION      = 11115
    MISSING_VALUE               = 11117

    # --- positional and value errors (11xxx) ---
    UNEXPECTED_ARGUMENT         = 11121
    CONVERSION_FAILURE          = 11123
    INVALID_CHOICE              = 11124

    # --- validation errors (11xxx) ---
    VALIDATION_FAILURE          = 11131

    # --- warnings (12xxx) ---
    DEPRECATED_ARGUMENT         = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _prog(options, /):
    main = __import__("__main__")
    if hasattr(main, "__prog__"):
        return main.__prog__
    if (command := options.get("command")) is not None:
        return command.root.name
    return "argotree"


class _Faulty:
    """
    Internal: message + options storage shared by errors and warnings.
    """
    code = Unset
    title = Unset
    __palette__ = {}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        if name == "options" or name.startswith("__"):
            raise AttributeError(name)
        try:
            return self.options[name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    def __str__(self):
        return self.message

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})

    def __render__(self, kind, /):
        styler, text = palette(self.options.get("colorful", False), type(self).__palette__)

        header = Text.assemble(
            "[ ",
            text(_prog(self.options), styler("prog-name")),
            " — ",
            text(self.options.get("code", type(self).code).normalize(), styler("code")),
            " | ",
            text(self.options.get("title", type(self).title).title(), styler(f"{kind}-title")),
            " ]"
        )
        message = text(self.message, styler(f"{kind}-message"))
        parts = [message]
        if hint := self.options.get("hint"):
            parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
        if doc := getdoc(self.options.get("code", type(self).code)):
            parts.append(text(doc, styler("docs")))

        if self.options.get("fancy", False):
            return Panel(Group(*parts), title=header, title_align="left")
        return Group(header, *parts)


class ParsingError(_Faulty, Exception):
    """
    Base class of every failure raised while parsing one argv.

    Carried options (all optional)
    - command: the command node the failure is attributed to.
    - hint: a single actionable suggestion.
    - code/title: override the class-level FaultCode and title.
    - shell/fancy/colorful: runtime rendering flags (see trigger()).
    """
    code = FaultCode.UNRECOGNIZED_OPTION
    title = "parsing error"

    __palette__ = {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "error-title": "bold #FF4DA6",  # friendly pinky title

        # body
        "error-message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
        "docs": "#6B6F7A",
        "usage": "bold #E6E6F0",
    }

    def __rich__(self):
        rendered = self.__render__("error")
        if (command := self.options.get("command")) is None:
            return rendered
        styler, text = palette(self.options.get("colorful", False), type(self).__palette__)
        return Group(text("Usage: " + command.usage(), styler("usage")), rendered)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)


class UnrecognizedOptionError(ParsingError):
    code = FaultCode.UNRECOGNIZED_OPTION
    title = "unrecognized option"


class AmbiguousAbbreviationError(ParsingError):
    code = FaultCode.AMBIGUOUS_ABBREVIATION
    title = "ambiguous abbreviation"


class FlagAssignmentError(ParsingError):
    code = FaultCode.FLAG_ASSIGNMENT
    title = "flag assignment"


class MissingValueError(ParsingError):
    code = FaultCode.MISSING_VALUE
    title = "missing value"


class ConversionError(ParsingError):
    code = FaultCode.CONVERSION_FAILURE
    title = "conversion failure"


class InvalidChoiceError(ConversionError):
    code = FaultCode.INVALID_CHOICE
    title = "invalid choice"


class UnexpectedArgumentError(ParsingError):
    code = FaultCode.UNEXPECTED_ARGUMENT
    title = "unexpected argument"


class UnknownSubcommandError(ParsingError):
    code = FaultCode.UNKNOWN_SUBCOMMAND
    title = "unknown subcommand"


class AmbiguousSubcommandError(AmbiguousAbbreviationError):
    code = FaultCode.AMBIGUOUS_SUBCOMMAND
    title = "ambiguous subcommand"


class ValidationFailure(ParsingError):
    """
    A validation hook rejected its node's values.

    - error: the hook's error verbatim (the raised exception or the returned value).
    - command: the node whose hook failed.
    """
    code = FaultCode.VALIDATION_FAILURE
    title = "validation failure"


class CleanExit(Exception):
    """
    Base class of the non-error short-circuits (help and version requests).

    Not a ParsingError: callers that only catch parsing failures let these through.
    The requesting command node is kept as `command`.
    """

    def __init__(self, command, /, **options):
        super().__init__(command)
        self.command = command
        self.options = MappingProxyType(options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.command, **{**self.options, **overrides})

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        stdout.print(self, highlight=False)
        sys.exit(0)


class HelpRequest(CleanExit):
    def __str__(self):
        from .rendering import helptext
        return helptext(self.command)

    def __rich__(self):
        from .rendering import render
        return render(self.command, fancy=self.options.get("fancy", False), colorful=self.options.get("colorful", False))


class VersionRequest(CleanExit):
    def __str__(self):
        from .rendering import versiontext
        return versiontext(self.command)

    def __rich__(self):
        return Text(str(self))


class CommandWarning(_Faulty, Warning):
    code = FaultCode.DEPRECATED_ARGUMENT
    title = "warning"

    __palette__ = {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #FFB400",  # amber fault code for warnings
        "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

        # body
        "warning-message": "#D6D6DE",  # slightly lighter gray body
        "hint-arrow": "#B8EFAF dim",  # softer green arrow
        "hint": "italic #B8EFAF",  # softer green hint text
        "docs": "#6B6F7A",
    }

    def __rich__(self):
        return self.__render__("warning")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)


class DeprecatedArgumentWarning(CommandWarning):
    code = FaultCode.DEPRECATED_ARGUMENT
    title = "deprecated argument"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace() before triggering.
    - outside shell mode, errors and clean exits are raised and warnings are warned;
      in shell mode, they are rendered with rich and the process exits
      (status 1 for errors, 0 for clean exits; warnings do not exit).

    typical options
    - command, shell, fancy, colorful, hint, and any kind-specific context
      (input/index/candidates/raw/target/expected...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    # Errors
    "ParsingError",
    "UnrecognizedOptionError",
    "AmbiguousAbbreviationError",
    "AmbiguousSubcommandError",
    "FlagAssignmentError",
    "MissingValueError",
    "ConversionError",
    "InvalidChoiceError",
    "UnexpectedArgumentError",
    "UnknownSubcommandError",
    "ValidationFailure",

    # Clean exits
    "CleanExit",
    "HelpRequest",
    "VersionRequest",

    # Warnings
    "CommandWarning",
    "DeprecatedArgumentWarning",

    # Codes and functions
    "FaultCode",
    "trigger",
    "getdoc",
)
