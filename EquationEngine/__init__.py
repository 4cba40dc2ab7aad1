from .EquationMembers import (
    DEFAULT_MEMBERS,
    Constant,
    Equation,
    Function,
    MemberGroup,
    MemberRegistry,
    Operator,
    OperatorKind,
    SubExpressionDelimiter,
    Variable,
)
from .EquationParser import compile, validate
from .error import ErrorInfo, ErrorKind
