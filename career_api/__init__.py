"""HTTP surface (FastAPI) over `career_core`."""
