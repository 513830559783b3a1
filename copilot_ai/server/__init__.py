"""FastAPI boundary exposing the copilot runtime over HTTP."""
