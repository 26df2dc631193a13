"""
Error types for the similarity pipeline.

Every failure the pipeline can report is a subclass of ``SparseSimError``.
All of them are fatal: once the corpus is loaded the scan itself cannot fail.
"""

from typing import Optional, Any, Dict


class SparseSimError(Exception):
    """
    Base exception for all sparsesim errors.
    
    Carries a ``details`` dict for structured reporting.
    """
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize error.
        
        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidVector(SparseSimError):
    """
    Raised when a vector violates the index/value invariant.
    
    Indices must be strictly ascending non-negative integers, aligned
    one-to-one with at least one value.
    """
    
    def __init__(self, message: str,
                 vector_id: Optional[str] = None,
                 line_number: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.vector_id = vector_id
        self.line_number = line_number
        
        self.details.update({
            'vector_id': vector_id,
            'line_number': line_number
        })
    
    def at_line(self, line_number: int) -> "InvalidVector":
        """Return a copy of this error annotated with an input line number."""
        return InvalidVector(
            f"line {line_number}: {self.message}",
            vector_id=self.vector_id,
            line_number=line_number,
            details={k: v for k, v in self.details.items()
                     if k not in ('vector_id', 'line_number')}
        )


class IngestionError(SparseSimError):
    """
    Raised when the corpus cannot be read or a record cannot be decoded.
    """
    
    def __init__(self, message: str,
                 source: Optional[str] = None,
                 line_number: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize ingestion error.
        
        Args:
            message: Error message
            source: Path or name of the input being read
            line_number: 1-based line of the offending record
            details: Additional error context
        """
        super().__init__(message, details)
        self.source = source
        self.line_number = line_number
        
        self.details.update({
            'source': source,
            'line_number': line_number
        })


class ConfigError(SparseSimError):
    """Raised when configuration values are invalid."""
    
    def __init__(self, message: str,
                 key: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.key = key
        self.details['key'] = key
