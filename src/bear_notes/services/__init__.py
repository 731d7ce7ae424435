"""Services package - embeddings, vector index, retrieval and tool dispatch."""
