"""
Tests for the shared apply_patch helper used by every update operation.
"""

import pytest

from foundation.models.utils import apply_patch
from foundation.utils.errors import ValidationError


class Record:
    name = 'old'
    age = 1
    note = 'keep'


def test_copies_whitelisted_fields_only():
    record = Record()
    changed = apply_patch(record, {'name': 'new', 'secret': 'x', 'id': 99}, allowed=('name', 'id'))
    assert changed == ['name']
    assert record.name == 'new'
    assert not hasattr(record, 'secret')


def test_none_is_ignored_unless_nullable():
    record = Record()
    changed = apply_patch(record, {'name': None, 'note': None, 'age': 3},
                          allowed=('name', 'note', 'age'), nullable=('note',))
    assert set(changed) == {'note', 'age'}
    assert record.name == 'old'
    assert record.note is None


def test_aliases_and_coercers():
    record = Record()
    apply_patch(record, {'fullName': 'Ana', 'age': '42'}, allowed=('name', 'age'),
                aliases={'fullName': 'name'}, coercers={'age': int})
    assert record.name == 'Ana'
    assert record.age == 42


def test_no_writable_fields_raises():
    with pytest.raises(ValidationError) as excinfo:
        apply_patch(Record(), {'unknown': 1}, allowed=('name',))
    assert excinfo.value.message == 'No valid fields to update'
    assert excinfo.value.status_code == 400
