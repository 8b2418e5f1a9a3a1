"""
projectgate — project-scoped authorization for the project-management suite.

``projectgate.policy`` holds the pure decision core (capabilities, presets,
the evaluator). The rest of the package is the service boundary around it:
bearer-token identity, the project/grant read model, and the permissions API.
"""
