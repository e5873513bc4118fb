# =============================================================================
# Screenlog - Shared Package
# =============================================================================
# Data contracts and vector math used by both the recorder and the server.
# =============================================================================
