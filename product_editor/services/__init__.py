"""
Rule components and the editing session.

Rule modules are pure: ``(config, ...) -> config' | Rejected``. Only
``editing_session`` talks to collaborators.
"""
