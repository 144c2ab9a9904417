"""
Face Descriptor Matching

FLOW OVERVIEW
- match_face(descriptor, candidates, threshold, partial_threshold)
  1) Validate the query descriptor (non-empty numeric vector).
  2) For every candidate owner, compare each stored descriptor using
     similarity = 1 - euclidean_distance(query, stored).
  3) Keep the best similarity across all owners (linear scan).
  4) similarity > threshold (0.6)          → authenticated
     similarity > partial_threshold (0.4)  → needs_rescan
     otherwise                             → not recognized
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple

import numpy as np

from .errors import ValidationError

logger = logging.getLogger(__name__)

MATCH_MESSAGE = 'Face authentication successful'
PARTIAL_MESSAGE = 'Face partially matched. Please try again.'
NO_MATCH_MESSAGE = 'Face not recognized. Please use password login.'


@dataclass
class FaceMatchResult:
    """Outcome of a face login attempt"""
    authenticated: bool
    similarity: float
    message: str
    needs_rescan: bool = False
    owner: Optional[Any] = None


def _as_vector(values) -> np.ndarray:
    if values is None or isinstance(values, (str, bytes)):
        raise ValidationError('Invalid descriptor format')
    try:
        vector = np.asarray(values, dtype=float)
    except (TypeError, ValueError):
        raise ValidationError('Invalid descriptor format')
    if vector.ndim != 1 or vector.size == 0:
        raise ValidationError('Invalid descriptor format')
    return vector


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance between two descriptors of equal length."""
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    if vec_a.shape != vec_b.shape:
        raise ValueError('Invalid descriptor format')
    return float(np.linalg.norm(vec_a - vec_b))


def match_face(descriptor, candidates: Iterable[Tuple[Any, Any]],
               threshold: float = 0.6, partial_threshold: float = 0.4) -> FaceMatchResult:
    """
    Find the best matching owner for a face descriptor.

    Args:
        descriptor: query descriptor (list of floats)
        candidates: iterable of (owner, stored_descriptors) where stored_descriptors
            is a list of descriptors
        threshold: similarity required to authenticate
        partial_threshold: similarity above which a rescan is suggested

    Returns:
        FaceMatchResult
    """
    query = _as_vector(descriptor)
    best_owner = None
    best_similarity = 0.0

    for owner, stored_descriptors in candidates:
        for stored in stored_descriptors or []:
            if not isinstance(stored, (list, tuple)):
                continue
            if len(stored) != query.size:
                logger.warning("Skipping stored face descriptor with length %d (expected %d)",
                               len(stored), query.size)
                continue
            similarity = 1.0 - euclidean_distance(query, stored)
            if similarity > best_similarity:
                best_similarity = similarity
                best_owner = owner

    if best_similarity > threshold:
        return FaceMatchResult(True, best_similarity, MATCH_MESSAGE, owner=best_owner)

    needs_rescan = best_similarity > partial_threshold
    message = PARTIAL_MESSAGE if needs_rescan else NO_MATCH_MESSAGE
    return FaceMatchResult(False, best_similarity, message, needs_rescan=needs_rescan)
