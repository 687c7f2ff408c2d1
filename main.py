import enum

from argotree import *


class Operation(enum.Enum):
    ADD = "add"
    MULTIPLY = "multiply"


@command(version="0.0.0", shell=True, colorful=True)
def calc(
        verbose=Flag(short=True, descr="Print the operation before the result."),
):
    """
    Tiny calculator showing nested subcommands and shared options.
    """


@calc.command(default=True)
def math(
        operands=Argument(type=int, nargs="*", descr="Integers to combine."),
        /,
        shared=Group(calc),
        operation=Option(type=Operation, default=Operation.ADD, descr="How to combine the operands."),
):
    """
    Combine integers with a single operation.
    """
    total = 1 if operation is Operation.MULTIPLY else 0
    for operand in operands:
        total = total * operand if operation is Operation.MULTIPLY else total + operand
    if shared.verbose:
        print(operation.value, *operands)
    print(total)


if __name__ == '__main__':
    invoke(calc)
