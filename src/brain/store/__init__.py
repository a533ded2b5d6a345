"""File-backed stores: project tasks, the dump inbox, notes and projects."""
