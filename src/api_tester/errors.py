"""Error taxonomy for the API tester."""


class ApiTesterError(Exception):
    """Base class for every error raised by the API tester itself."""


class UnresolvedHandler(ApiTesterError):
    """A route's handler cannot be mapped to a concrete entry point."""


class InvalidInvocation(ApiTesterError, ValueError):
    """The caller asked for a simulated call the tester cannot build."""


class LedgerIOFailure(ApiTesterError):
    """Reading or writing the invocation ledger failed."""
