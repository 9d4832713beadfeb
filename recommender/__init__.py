"""
Recommender package: client side of the remote recommendation service.

This package provides:
- Client: POST /predict with deadline and failure classification
- Models: request/response shapes of the wire protocol
- Exceptions: timeout, connection, status and decode errors
"""

from . import client
from . import config_loader
from . import exceptions
from . import models

__all__ = [
    'client',
    'config_loader',
    'exceptions',
    'models'
]
