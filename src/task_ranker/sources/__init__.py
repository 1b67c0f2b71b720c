"""Task sources and source combinators."""
