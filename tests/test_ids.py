"""
Unit tests for item identity generation.
"""

import hashlib

from brain.utils.ids import ID_LENGTH, generate_item_id


def test_id_is_six_lowercase_hex_chars():
    item_id = generate_item_id(5, "- [ ] Write docs", 1700000000)
    assert len(item_id) == ID_LENGTH == 6
    assert all(c in "0123456789abcdef" for c in item_id)


def test_id_is_deterministic():
    a = generate_item_id(12, "- [ ] Ship release #p:1", 1706000000)
    b = generate_item_id(12, "- [ ] Ship release #p:1", 1706000000)
    assert a == b


def test_id_matches_md5_of_line_raw_mtime():
    expected = hashlib.md5(b"3:- [ ] Fix bug:1700000000").hexdigest()[:6]
    assert generate_item_id(3, "- [ ] Fix bug", 1700000000) == expected


def test_id_changes_with_line_number():
    assert generate_item_id(1, "- [ ] Task", 100) != generate_item_id(2, "- [ ] Task", 100)


def test_id_changes_with_content():
    assert generate_item_id(1, "- [ ] Task", 100) != generate_item_id(1, "- [ ] Tusk", 100)


def test_id_changes_with_mtime():
    assert generate_item_id(1, "- [ ] Task", 100) != generate_item_id(1, "- [ ] Task", 101)


def test_fractional_mtime_truncated_to_seconds():
    assert generate_item_id(1, "x", 100.9) == generate_item_id(1, "x", 100)
