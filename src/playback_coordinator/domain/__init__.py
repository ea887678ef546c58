"""
Domain Layer

Pure playback coordination logic:
- shared/: exceptions, message catalogues, annotated types
- playback/: sessions, queue, skip votes, completion index
"""

from playback_coordinator.domain.shared.exceptions import DomainError

__all__ = ["DomainError"]
