"""
Tests for face descriptor matching.
"""

import pytest

from foundation.utils.errors import ValidationError
from foundation.utils.face_match import (
    MATCH_MESSAGE, NO_MATCH_MESSAGE, PARTIAL_MESSAGE, euclidean_distance, match_face
)


def test_euclidean_distance():
    assert euclidean_distance([0, 0], [3, 4]) == pytest.approx(5.0)


def test_exact_match_authenticates():
    result = match_face([0.1, 0.2, 0.3], [('alice', [[0.1, 0.2, 0.3]])])
    assert result.authenticated
    assert result.owner == 'alice'
    assert result.similarity == pytest.approx(1.0)
    assert result.message == MATCH_MESSAGE


def test_best_candidate_wins():
    candidates = [
        ('far', [[0.9, 0.9, 0.9]]),
        ('near', [[0.5, 0.5, 0.5], [0.1, 0.2, 0.35]]),
    ]
    result = match_face([0.1, 0.2, 0.3], candidates)
    assert result.authenticated
    assert result.owner == 'near'


def test_partial_match_asks_for_rescan():
    # distance 0.5 -> similarity 0.5
    result = match_face([0.0, 0.0], [('bob', [[0.3, 0.4]])])
    assert not result.authenticated
    assert result.needs_rescan
    assert result.similarity == pytest.approx(0.5)
    assert result.message == PARTIAL_MESSAGE
    assert result.owner is None


def test_threshold_is_exclusive():
    # distance 0.4 -> similarity exactly 0.6, which is not enough
    result = match_face([0.0, 0.0], [('bob', [[0.0, 0.4]])])
    assert not result.authenticated
    assert result.needs_rescan


def test_no_match():
    result = match_face([0.0, 0.0], [('bob', [[3.0, 4.0]])])
    assert not result.authenticated
    assert not result.needs_rescan
    assert result.message == NO_MATCH_MESSAGE


def test_stored_descriptors_of_other_length_are_skipped():
    result = match_face([0.1, 0.2], [('bad', [[0.1, 0.2, 0.3]]), ('good', [[0.1, 0.2]])])
    assert result.owner == 'good'


def test_no_candidates():
    result = match_face([0.1, 0.2], [])
    assert not result.authenticated
    assert result.similarity == 0.0


@pytest.mark.parametrize('descriptor', [None, [], 'abc', [['nested']], ['x', 'y']])
def test_malformed_query_descriptor(descriptor):
    with pytest.raises(ValidationError):
        match_face(descriptor, [])
