"""Release-candidate sequencing, commit-range resolution and staleness checks."""
