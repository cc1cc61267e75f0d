"""Infrastructure collaborators used by the CLI.

- store: YAML-backed configuration store (applications, environments, workloads)
- workspace: local manifest discovery and parsing
- deployer: shell deployer that runs configured deploy commands
- settings: stackpilot.yaml loading and validation
"""
