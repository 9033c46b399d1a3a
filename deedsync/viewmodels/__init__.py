"""ViewModel package for UI state and command surfaces.

Call context:
    ``deedsync/app/controller.py`` builds concrete viewmodels from this package
    and hands them to whichever view renders deeds and feedback.

Dependencies:
    Modules in this package depend on domain types and use-case objects only.
    I/O adapters remain outside.

Responsibilities:
    - Expose read-only projections of deeds, feedback, and busy state.
    - Forward intent commands to the transaction orchestrator.
    - Hold typed settings with validation and persistence hooks.
"""
