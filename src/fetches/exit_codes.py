"""Numeric process exit codes used by the ``fetches`` command line.

Each constant maps to one error kind and is referenced by the corresponding
:class:`~fetches.exceptions.FetchesError` subclass, so shell wrappers can
tell a timeout from a validation failure without parsing stderr.

Example::

    $ fetches get https://api.example.com/slow --timeout 1
    $ echo $?
    6   # EXIT_TIMEOUT -- the attempt exceeded its deadline
"""

EXIT_SUCCESS = 0
"""The request completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIGURATION_ERROR = 3
"""The configuration or validator kind is not supported."""

EXIT_RESPONSE_STATUS = 4
"""The remote API answered with a non-2xx status."""

EXIT_NETWORK_ERROR = 5
"""A transport-level failure occurred (DNS failure, connection refused)."""

EXIT_TIMEOUT = 6
"""An attempt exceeded its configured timeout."""

EXIT_VALIDATION_ERROR = 7
"""The response body did not match the configured schema."""

EXIT_CANCELLED = 130
"""The request was cancelled by the caller."""
