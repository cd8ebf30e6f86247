"""Error taxonomy shared by the stores, the LLM client and the orchestrator."""

from enum import Enum


class ConfidantError(Exception):
    """Base class for all Confidant errors."""


class ValidationError(ConfidantError):
    """Malformed turn input (empty or oversized message, missing user id)."""


class StorageUnavailable(ConfidantError):
    """The profile or history store could not be reached."""


class CompletionCategory(Enum):
    """Coarse failure categories of the completion provider."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    MALFORMED = "malformed"
    GENERIC = "generic"


class CompletionFailure(ConfidantError):
    """The completion provider failed to produce a reply."""

    category = CompletionCategory.GENERIC


class RateLimited(CompletionFailure):
    category = CompletionCategory.RATE_LIMIT


class ProviderAuthError(CompletionFailure):
    category = CompletionCategory.AUTH


class ProviderConnectionError(CompletionFailure):
    category = CompletionCategory.NETWORK


class MalformedCompletion(CompletionFailure):
    category = CompletionCategory.MALFORMED
