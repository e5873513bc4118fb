# =============================================================================
# Screenlog - Recorder Package
# =============================================================================
# This package contains the client-side components responsible for screen
# capture, change detection, text recognition, deduplication and uploading
# accepted text to the server.  Screenshots never leave the device unless
# frame description is explicitly enabled.
# =============================================================================
