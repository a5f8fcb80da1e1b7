#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/exceptions.py
"""Custom exceptions for the safemd library.

Fatal conditions abort a render call and are raised as exceptions from this
module. Recoverable conditions (an unresolved footnote, a stripped attribute)
are never raised; they are reported as :class:`safemd.diagnostics.Diagnostic`
entries next to the rendered HTML.

Exception Hierarchy
-------------------
- SafeMdError (base exception)

  - ValidationError (invalid render options)

  - ComplexityExceeded (AST nesting deeper than the configured limit)

  - ParseError (base grammar failed on the input)

  - UnsupportedNode (no HTML rule registered for a node kind)

"""

from typing import Any


class SafeMdError(Exception):
    """Base exception class for all safemd-specific errors.

    Catching this will catch every error raised by a render call.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(SafeMdError):
    """Exception raised for invalid render options.

    Parameters
    ----------
    message : str
        Description of the validation failure
    parameter_name : str, optional
        Name of the parameter that failed validation
    parameter_value : Any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception, if any

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class ComplexityExceeded(SafeMdError):
    """Exception raised when the document tree is nested too deeply.

    Raised before any post-processing runs, so no partial output exists.

    Parameters
    ----------
    depth : int
        Depth at which the traversal crossed the limit
    max_depth : int
        The configured limit
    original_error : Exception, optional
        The original exception, if any

    """

    def __init__(self, depth: int, max_depth: int, original_error: Exception | None = None):
        """Initialize with the offending depth and configured limit."""
        message = f"Markdown AST too complex: tree depth > {max_depth}"
        super().__init__(message, original_error)
        self.depth = depth
        self.max_depth = max_depth


class ParseError(SafeMdError):
    """Exception raised when the base grammar cannot process the input."""

    pass


class UnsupportedNode(SafeMdError):
    """Exception raised when the HTML transformer meets an unregistered node kind.

    Parameters
    ----------
    node_type : str
        Class name of the node without a rendering rule
    original_error : Exception, optional
        The original exception, if any

    """

    def __init__(self, node_type: str, original_error: Exception | None = None):
        """Initialize with the node type that has no rule."""
        super().__init__(f"No HTML rule registered for node type: {node_type}", original_error)
        self.node_type = node_type
