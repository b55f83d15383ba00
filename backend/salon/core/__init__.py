# Core package initialization
# Configuration, error taxonomy, time normalization, logging and auth helpers
