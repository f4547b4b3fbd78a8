"""AlloyDB / PostgreSQL vector store with metadata filtering."""

__version__ = "0.1.0"
