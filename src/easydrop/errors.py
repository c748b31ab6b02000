"""Error kinds raised by EasyDrop components.

Every error is a ValueError so callers that already guard against
ValueError (the service layer, the CLI) need no special casing. Each
error aborts the whole triggering call: components check everything
before they mutate anything.
"""

from __future__ import annotations


class EasyDropError(ValueError):
    """Base class for all EasyDrop failures."""


class InsufficientPayment(EasyDropError):
    """Payment is below the required fee."""


class AlreadySubscribed(EasyDropError):
    """Account is still flagged as an active subscriber."""


class NotRemovable(EasyDropError):
    """Subscription is absent, inactive, or not yet expired."""


class LengthMismatch(EasyDropError):
    """Distribution lists are not index-aligned."""


class Unauthorized(EasyDropError):
    """Caller or engine lacks the capability the operation requires."""


class TransferFailed(EasyDropError):
    """An asset transfer inside a batch did not complete."""


class InvalidAccount(EasyDropError):
    """Account identifier is not a valid address."""


class RegistryError(EasyDropError):
    """Raised by asset registries when a transfer or query is rejected."""
