"""
kd is a simple Kubernetes resources deployment tool. It renders templated manifests, submits them with `kubectl` and
waits for the rollout of Deployments, StatefulSets, DaemonSets and Jobs to complete.
"""

__version__ = "1.0.0"
