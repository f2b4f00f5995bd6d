"""Domain layer: entities, DTOs, ports and exceptions. No I/O lives here."""
