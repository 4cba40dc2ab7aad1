# Main.py
""""" Command line entry point for the equation engine.

   Responsibilities:
   - Read settings from config.json and set up logging
   - Build the Equation from the command line (text, constants, variables)
   - Print every validation error with a caret under its position, or
     print the compiled function's value at the requested points

   Example:
       python main.py "2X^2 + A" -c A=3+2 --at 1 2 3

"""""
import argparse
import logging
import sys

from pydantic import ValidationError

from EquationEngine import EquationParser, config_manager
from EquationEngine import error as E
from EquationEngine.EquationMembers import Constant, Equation, Variable

logger = logging.getLogger(__name__)

_log_handler = None


def configure_logging(level):
    """Attach one stream handler to the root logger. The engine itself only creates loggers."""
    global _log_handler
    root = logging.getLogger()
    if _log_handler is None:
        _log_handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s %(name)-12s %(levelname)-8s %(message)s')
        _log_handler.setFormatter(formatter)
        root.addHandler(_log_handler)
    root.setLevel(str(level).upper())


def parse_constant(text):
    name, separator, value = text.partition("=")
    if not separator:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{text}'")
    try:
        return Constant.create(name.strip(), value)
    except ValidationError:
        raise argparse.ArgumentTypeError(f"invalid constant name '{name.strip()}'")


def build_parser():
    parser = argparse.ArgumentParser(prog="equation-engine", description="Validate and evaluate an equation.")
    parser.add_argument("equation", help="equation text, e.g. \"2X^2 + sqrt(X) - A\"")
    parser.add_argument(
        "-c", "--constant", action="append", default=[], type=parse_constant, metavar="NAME=VALUE",
        help="declare a constant; later constants may use earlier ones")
    parser.add_argument(
        "--at", nargs="+", type=float, metavar="VALUE",
        help="evaluate at these values (one per variable for each point)")
    parser.add_argument("--variables", nargs="+", metavar="NAME", help="variable names, in argument order")
    parser.add_argument("--log-level", help="overrides log_level from config.json")
    return parser


def sample_domain(domain):
    """Evenly spaced points from domain["start"] to domain["stop"], both included."""
    start = float(domain["start"])
    stop = float(domain["stop"])
    samples = int(domain["samples"])
    if samples < 2:
        return [start]
    step = (stop - start) / (samples - 1)
    return [start + step * i for i in range(samples)]


def format_errors(equation, errors):
    """Text of each faulty target with a caret under every error position, then the messages."""
    lines = []
    for target in dict.fromkeys(error.target for error in errors):
        if target is None:
            label, text = "", equation.text
        else:
            constant = next(c for c in equation.constants if c.shorthand == target)
            label, text = f"{target} = ", constant.value
        positions = {error.offset for error in errors if error.target == target}
        lines.append(label + text)
        lines.append(" " * len(label) + "".join("^" if i in positions else " " for i in range(max(positions) + 1)))

    for error in errors:
        lines.append(f"{error.kind.value}: {error.message}")
    return lines


def evaluation_points(values, arity):
    if arity == 0:
        return [()]
    if len(values) % arity != 0:
        raise ValueError(f"--at needs a multiple of {arity} values")
    return [tuple(values[i:i + arity]) for i in range(0, len(values), arity)]


def main(argv=None):

    """
    Parse the arguments, compile once and print the results.
    - Keep this thin: no business logic here.
    """

    args = build_parser().parse_args(argv)

    all_settings = config_manager.load_setting_value("all")
    configure_logging(args.log_level or all_settings["log_level"])
    logger.debug("Settings: %s", all_settings)

    variable_names = args.variables if args.variables is not None else all_settings["variables"]
    try:
        equation = Equation.create(
            args.equation,
            constants=args.constant,
            variables=[Variable.create(name) for name in variable_names])
    except ValidationError as exc:
        print(f"Invalid equation definition: {exc.errors()[0]['msg']}")
        return 2

    try:
        function = EquationParser.compile(equation)
    except E.EquationValidationError as exc:
        print("\n".join(format_errors(equation, exc.errors)))
        return 1
    except E.EquationDefinitionError as exc:
        print(f"{E.Error_Dictionary[exc.code[0]]} {exc.code}: {exc.message}")
        return 2

    if args.at is not None:
        try:
            points = evaluation_points(args.at, function.arity)
        except ValueError as exc:
            print(exc)
            return 2
    elif function.arity <= 1:
        points = evaluation_points(sample_domain(all_settings["domain"]), function.arity)
    else:
        print("Equations in more than one variable need --at values.")
        return 2

    for point in points:
        arguments = ", ".join(f"{name}={value}" for name, value in zip(function.variables, point))
        print(f"{arguments} -> {function(*point)}" if arguments else str(function()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
