"""
Item identity generation.

Identities are 6 hex characters of md5("{line}:{raw}:{mtime}"). They are a
pure function of where a line sits, what it says and when the file was last
written, so any edit that moves the line or touches the file yields new ids.
Existing dump and todo files rely on this exact digest, so the hash input
format and truncation must not change.
"""

import hashlib

ID_LENGTH = 6


def generate_item_id(line_number: int, raw_content: str, mtime: int) -> str:
    """
    Generate the short identifier for a dump item or task line.

    Args:
        line_number: 1-indexed line number of the item (start line for notes)
        raw_content: Full line for tasks, header title for notes
        mtime: File modification time in whole Unix seconds

    Returns:
        Lowercase hex string, e.g. "a7f3c2"
    """
    hash_input = f"{line_number}:{raw_content}:{int(mtime)}"
    return hashlib.md5(hash_input.encode("utf-8")).hexdigest()[:ID_LENGTH]
