"""Content studio: multi-format lesson content generation."""
