from __future__ import annotations

from typing import Any, Optional


class MapException(Exception):
    """Base exception for map operations"""
    pass


class InvalidArgumentException(MapException, ValueError):
    """Exception raised when a size, depth, count or key is outside its domain"""
    
    def __init__(self, message: str, argument: Optional[str] = None, value: Any = None) -> None:
        self.argument = argument
        self.value = value
        super().__init__(message)


class TypeMismatchException(MapException, TypeError):
    """Exception raised when a value cannot be converted to a string"""
    
    def __init__(self, value: Any, operation: str = 'join') -> None:
        self.value = value
        self.operation = operation
        
        super().__init__(
            f"Value of type `{type(value).__name__}` can not be converted to a string "
            f"in `{operation}()`."
        )


class BadMethodCallException(MapException, AttributeError):
    """Exception raised when a method is neither defined nor registered"""
    
    def __init__(self, class_name: str, method: str) -> None:
        self.class_name = class_name
        self.method = method
        
        super().__init__(f"Method {class_name}::{method} does not exist.")


class InvalidJsonException(MapException, ValueError):
    """Exception raised when a string can not be decoded into a map"""
    
    def __init__(self, text: str, reason: str = '') -> None:
        self.text = text
        self.reason = reason
        
        message = f"Not a valid JSON string: {text}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidPatternException(MapException, ValueError):
    """Exception raised when a regular expression can not be compiled"""
    
    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        
        super().__init__(f"Regular expression error: {reason}")
