"""
Unit tests for the dump parser (parsers/dump_parser.py).
"""

from brain.parsers.dump_parser import extract_note_body, parse_dump_content


def test_note_block_boundary():
    content = (
        "[Note] Meeting notes\n"
        "    Line one\n"
        "    Line two\n"
        "- [ ] Next task\n"
    )
    items = parse_dump_content(content)
    assert len(items) == 2

    note, task = items
    assert note.type == "note"
    assert (note.start_line, note.end_line) == (1, 3)
    assert note.content == "Meeting notes"
    assert note.raw_line == "Meeting notes"

    assert task.type == "todo"
    assert (task.start_line, task.end_line) == (4, 4)
    assert task.content == "Next task"
    assert task.raw_line == "- [ ] Next task"


def test_headers_and_blank_lines_skipped():
    content = "# Dump\n\nQuick capture landing zone.\n\n- [ ] Task one #captured:2024-01-01\n"
    items = parse_dump_content(content)
    assert [(i.type, i.start_line) for i in items] == [("todo", 5)]


def test_blank_line_closes_note():
    content = "[Note] Idea\n    body\n\n- [ ] Task\n"
    note, task = parse_dump_content(content)
    assert (note.start_line, note.end_line) == (1, 2)
    assert task.start_line == 4


def test_four_space_blank_line_stays_in_note():
    content = "[Note] Idea\n    para one\n    \n    para two\n"
    (note,) = parse_dump_content(content)
    assert (note.start_line, note.end_line) == (1, 4)
    assert extract_note_body(content, note) == "para one\n\npara two"


def test_note_at_end_of_file_closes():
    content = "- [ ] Task\n[Note] Last\n    tail"
    task, note = parse_dump_content(content)
    assert (note.start_line, note.end_line) == (2, 3)


def test_note_without_body():
    content = "[Note] Bare title\n- [ ] Task\n"
    note, task = parse_dump_content(content)
    assert (note.start_line, note.end_line) == (1, 1)
    assert extract_note_body(content, note) == ""


def test_indented_task_outside_note_is_task():
    (task,) = parse_dump_content("    - [ ] Indented task\n")
    assert task.type == "todo"
    assert task.content == "Indented task"


def test_indented_task_inside_note_is_body():
    content = "[Note] Plan\n    - [ ] not a dump task\n"
    (note,) = parse_dump_content(content)
    assert note.type == "note"
    assert extract_note_body(content, note) == "- [ ] not a dump task"


def test_completed_tasks_are_not_dump_items():
    assert parse_dump_content("- [x] done already\n- [>] started\n") == []


def test_consecutive_notes():
    content = "[Note] A\n    a body\n[Note] B\n    b body\n"
    a, b = parse_dump_content(content)
    assert (a.start_line, a.end_line) == (1, 2)
    assert (b.start_line, b.end_line) == (3, 4)
