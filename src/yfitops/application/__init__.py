"""Application layer: session handling and the queue engine."""
