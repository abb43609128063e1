"""Exceptions raised by the auth resolver, the vault and the stores."""


class AuthenticationError(RuntimeError):
    """Base for failures to establish who is calling."""


class Unauthenticated(AuthenticationError):
    """No token, or the token could not be verified by any mechanism."""


class ProfileReconciliationFailed(AuthenticationError):
    """Token was valid but the profile row could not be confirmed or created."""


class ProfileStoreError(RuntimeError):
    """Unexpected failure reading or writing a profile row."""


class ProfileConflict(ProfileStoreError):
    """Inserting a profile row hit a uniqueness constraint."""


class VaultError(RuntimeError):
    """Base for API-key vault failures."""


class ConfigurationError(VaultError):
    """The master secret is missing or empty."""


class ValidationError(VaultError):
    """Input to the vault is malformed."""


class CryptographicError(VaultError):
    """Cipher failure, including authentication tag mismatch."""


class CredentialError(RuntimeError):
    """Base for credential store failures."""


class DuplicateCredentialName(CredentialError):
    """The owner already has a credential with this name."""


class CredentialNotFound(CredentialError):
    """No such credential for this owner."""


class CredentialAlreadyRevoked(CredentialError):
    """The credential is no longer active."""


class CredentialStoreError(CredentialError):
    """Unexpected failure reading or writing a credential row."""
