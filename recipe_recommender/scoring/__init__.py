"""Feature extraction, weighted scoring, similarity and popularity."""
