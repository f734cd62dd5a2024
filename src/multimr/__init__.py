"""Create identical merge/pull requests across many git repositories."""
