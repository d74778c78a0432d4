"""Core domain logic: exceptions and the generation fan-out."""
