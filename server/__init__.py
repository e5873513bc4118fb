# =============================================================================
# Screenlog - Server Package
# =============================================================================
# This package contains the server-side components responsible for storing
# capture records, computing text embeddings, selecting context for
# generation prompts, and embedding-cluster diagnostics.
# =============================================================================
