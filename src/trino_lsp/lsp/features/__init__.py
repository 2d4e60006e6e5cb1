"""LSP features for trino-lsp."""
