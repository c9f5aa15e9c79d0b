"""Quote enrichment, condition evaluation and the screening pipeline."""
