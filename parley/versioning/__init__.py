"""Snapshots, restores, branches and the diffs between them."""
