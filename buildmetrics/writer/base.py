"""
Base connection interface for publication targets.
"""

import logging
from abc import ABC, abstractmethod

from ..schema.point import Batch

# Initialize logger
LOG = logging.getLogger(__name__)


class TargetConnection(ABC):
    """
    Base class for all target connections.
    One connection is opened per target per publish invocation.
    """

    @abstractmethod
    def write(self, batch: Batch) -> None:
        """
        Write one batch in a single call.

        Args:
            batch: Points plus database, retention policy and consistency

        Raises:
            Exception: on transport or store-side failure
        """
        pass

    def close(self) -> None:
        """
        Optional method to release the connection.
        Default implementation does nothing - override in subclasses that need cleanup.
        """
        pass

    def __enter__(self) -> 'TargetConnection':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
