"""
Custom exceptions for the settlement analysis service.
"""
from typing import Any, Dict, Optional


class SettlementAnalysisException(Exception):
    """Base exception for all settlement analysis errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.
        
        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FileProcessingError(SettlementAnalysisException):
    """Raised when an uploaded ledger cannot be processed."""
    pass


class ValidationError(SettlementAnalysisException):
    """Raised when an upload fails validation (size, encoding)."""
    pass


class ExportError(SettlementAnalysisException):
    """Raised when workbook export fails."""
    pass


class ConfigurationError(SettlementAnalysisException):
    """Raised when configuration is invalid."""
    pass


class DataNotFoundError(SettlementAnalysisException):
    """Raised when required data is not found."""
    pass


class NoTransactionsError(DataNotFoundError):
    """Raised when a ledger yields zero valid transactions."""
    pass
