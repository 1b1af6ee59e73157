"""JavaScript code generation."""
