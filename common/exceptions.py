"""Exception taxonomy shared by the inventory and replication engines."""


class HCPError(Exception):
    """
    Base exception class for all hcp-sync errors.
    """
    pass


class TransportError(HCPError):
    """
    Raised when a node cannot be reached (connection, TLS or timeout failure).
    """
    pass


class ProtocolError(HCPError):
    """
    Raised when a listing response is malformed, unparseable or does not
    make progress.
    """
    pass


class ValidationError(HCPError):
    """
    Raised when an input row or inventory entry is malformed.
    """
    pass


class PolicyError(HCPError):
    """
    Raised when a job has no single allow-listed source to copy from.
    """
    pass


class VerificationError(HCPError):
    """
    Raised when the post-copy probe on the target does not confirm the object.
    """
    pass


class ConfigurationError(HCPError):
    """
    Raised for run-level failures: missing or invalid parameters, unreadable
    input files. These are the only errors that end a run with a non-zero
    exit status.
    """
    pass
