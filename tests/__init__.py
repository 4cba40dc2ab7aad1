"""
Test suite for the equation engine

Contains one module per component of EquationEngine plus the command line.
"""
