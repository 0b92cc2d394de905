"""
Core module for the total-economy application

This module provides the shared infrastructure:
- Error handling system
- Configuration management
- Logging system
"""

from .errors import *
from .config import AppConfig, EconomyConfig, get_config, load_config
from .logging import get_logger, log_context, initialize_logging

__all__ = [
    # Error handling
    'AppError',
    'ServiceError',
    'DatabaseError',
    'ValidationError',
    'NotFoundError',
    'ConfigurationError',
    'ExternalServiceError',

    # Configuration
    'AppConfig',
    'EconomyConfig',
    'get_config',
    'load_config',

    # Logging
    'get_logger',
    'log_context',
    'initialize_logging',
]
