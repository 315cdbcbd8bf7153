class AsicError(Exception):
    """Base class for asice-specific errors."""


# Writer protocol violations
class ProtocolError(AsicError):
    """Raised when a writer operation is called out of order or with forbidden input."""


class ReservedPathError(ProtocolError):
    pass


class UnsignedContainerError(ProtocolError, OSError):
    """Raised by close() on a writer that was never signed."""


# Archive stream state
class ArchiveClosedError(AsicError, OSError):
    pass


class EntryInProgressError(AsicError, OSError):
    pass


# Signature creation
class SignatureCreationError(AsicError):
    pass


class RootFileError(SignatureCreationError):
    pass


class EmptyContainerError(SignatureCreationError):
    pass


# Digests
class DigestFinalizedError(AsicError):
    pass


# Encrypted entry streams
class EncryptedStreamError(AsicError):
    pass
