"""
Feature modules for the StudyCore client.

Each module is self-contained with its own:
- interfaces.py: Protocol definitions for the collaborators the module consumes
- models.py: Pydantic models for data transfer
- exceptions.py: Module-specific exceptions
- one file per component (resolver, gate, orchestrator, ...)

Modules communicate through interfaces, not concrete implementations.
"""
