"""Download orchestration: single URL and batch runs."""
