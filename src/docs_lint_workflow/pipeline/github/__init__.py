"""GitHub API access used by the changed-path sources."""
