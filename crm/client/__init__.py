"""Client-side customer store and its list-processing pipeline."""
