"""Application services: snapshot loading, shortlist runs and reports."""
