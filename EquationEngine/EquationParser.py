# EquationParser.py
"""""
Public entry points: validate() and compile().

Both take an Equation (or a plain string, read as an equation in X) and an
optional MemberGroup. Nothing is cached between calls; every call builds
its own validator, compilers and placeholder tables.

    >>> compile("2(3+X)")(1)
    8.0
    >>> [e.kind.value for e in validate("2++3")]
    ['MultipleSequentialOperators']
"""""

import logging

from . import error as E
from .EquationMembers import DEFAULT_MEMBERS, Equation, MemberRegistry
from .EquationValidator import EquationValidator
from .ExpressionCompiler import CompiledEquation, ConstantReference, ExpressionCompiler, Number, VariableReference
from .Lexer import Lexer
from .SubExpressionResolver import SubExpressionResolver

logger = logging.getLogger(__name__)


def _prepare(equation, members):
    if members is None:
        members = DEFAULT_MEMBERS
    elif isinstance(members, MemberRegistry):
        members = members.freeze()

    if isinstance(equation, str):
        equation = Equation.create(equation)
    elif not isinstance(equation, Equation):
        raise TypeError(E.ERROR_MESSAGES["3001"])

    taken = members.shorthands()
    for member in equation.variables + equation.constants:
        if member.shorthand.lower() in taken:
            raise E.EquationDefinitionError(E.ERROR_MESSAGES["3000"] + member.shorthand, code="3000", equation=equation.text)
    return equation, members


def _run_validation(equation, members):
    results = EquationValidator(members).validate(equation)
    errors = [error for result in results for error in result.errors]
    return results, errors


def validate(equation, members=None):
    """Return every defect in the equation and its constants. An empty list means it compiles."""
    equation, members = _prepare(equation, members)
    logger.info("Validating equation %s", equation.text)

    _, errors = _run_validation(equation, members)
    if errors:
        logger.debug("%d error(s) in %s", len(errors), equation.text)
    return errors


def compile(equation, members=None):
    """Validate and compile. Raises EquationValidationError with the full error list when invalid."""
    equation, members = _prepare(equation, members)
    logger.info("Parsing equation %s", equation.text)

    results, errors = _run_validation(equation, members)
    if errors:
        raise E.EquationValidationError(errors, equation=equation.text)
    by_target = {result.target_name: result for result in results}

    references = {}
    for slot, variable in enumerate(equation.variables):
        references[variable.shorthand.lower()] = VariableReference(variable.shorthand, slot)

    constants = []
    slot = len(equation.variables)
    for constant in equation.constants:
        key = constant.shorthand.lower()
        if constant.is_number:
            references[key] = Number(constant.value.strip())
            continue
        # only earlier constants are in references at this point
        constants.append((slot, _compile_target(by_target[constant.shorthand], members, references)))
        references[key] = ConstantReference(constant.shorthand, slot)
        slot += 1

    root = _compile_target(by_target[None], members, references)
    logger.debug("Compiled %s to %r", equation.text, root)
    return CompiledEquation(equation, root, constants)


def _compile_target(result, members, references):
    lexer = Lexer(members, result.identifiers)
    compiler = ExpressionCompiler(members, lexer, dict(references))
    return SubExpressionResolver(compiler).resolve(result.text, result.functions)
