"""Value generation: token expansion, uniqueness and the pipeline engine."""
