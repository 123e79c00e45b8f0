"""Document content extraction and clause splitting."""
