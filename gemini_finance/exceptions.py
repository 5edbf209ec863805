"""Custom exception classes for Gemini Finance."""


class FinanceError(Exception):
    """Base exception for Gemini Finance."""
    pass


class ConfigError(FinanceError):
    """Configuration-related errors."""
    pass


class PersistenceError(FinanceError):
    """Reading or writing stored transactions failed."""
    pass


class DuplicateTransactionError(FinanceError):
    """A transaction id is already present in the store."""
    pass


class TransactionNotFoundError(FinanceError):
    """No transaction with the requested id exists."""
    pass


class AdvisorError(FinanceError):
    """Gemini API call failed."""
    pass


class ExtractionError(AdvisorError):
    """Natural-language transaction extraction failed."""
    pass


# Retryable errors
class RetryableAdvisorError(AdvisorError):
    """Advisor errors that can be retried."""
    pass
