"""Infrastructure layer: persistence, platform clients, email and observability."""
