"""
Exceptions raised by pydtft.

Both subclass ``ValueError`` so code that already guards numeric parameter
checks with ``except ValueError`` keeps working.
"""


class InvalidArgumentError(ValueError):
    """A parameter is malformed: bad factor, unknown method name, wrong shape."""


class DomainError(ValueError):
    """An array has no finite values left to work from."""
