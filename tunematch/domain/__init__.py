"""Pure domain layer: entities, scoring and collaborator contracts."""
