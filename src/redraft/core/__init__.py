"""Error taxonomy and collaborator contracts shared across redraft."""
