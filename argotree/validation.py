"""
Argotree validation chain: run each node's validation hook, root to leaf.

Hook contract
- a hook receives its own node's Namespace and may mutate it;
- it succeeds by returning None or True;
- it fails by returning anything else (the returned value is the error) or by
  raising an exception (the exception is the error).

The first failure stops the walk: hooks of deeper nodes never run. It surfaces
as a ValidationFailure carrying the hook's error verbatim and the failing node.
"""
from .faults import CleanExit, ParsingError, ValidationFailure


def validate(path, /):
    """
    Run the validation hooks of a bound path (tuple[Binding, ...]) in order.

    Raises
    - ValidationFailure: for the first hook that rejects its values.
    - ParsingError/CleanExit raised by a hook propagate unchanged.
    """
    for command, namespace in path:
        try:
            outcome = command.__validate__(namespace)
        except (ParsingError, CleanExit):
            raise
        except Exception as error:
            raise failure(command, error) from error
        if outcome is None or outcome is True:
            continue
        raise failure(command, outcome)
    return path


def failure(command, error, /):
    route = " ".join(step.name for step in command.path)
    return ValidationFailure(
        "validation failed for %r: %s" % (route, error),
        hint="run '%s --help' to check the accepted values" % route,
        command=command,
        error=error,
    )


__all__ = (
    "validate",
)
