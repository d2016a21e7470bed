"""
hum - provisioning CLI.

Scaffolds a service (project template, source-control repository, CI/CD
workflow, Ansible inventory) through a pluggable provider pipeline and
validates SSH connectivity to a remote Ansible host.
"""

__version__ = "0.1.0"
