"""Comment records and the mapping from downloader output."""
