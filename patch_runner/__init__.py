"""PatchKit runner (Python-first, step-driven).

Core design goals:
- One runner per machine at a time
- Lockfile handed off to the launched process
- Offline operation when the network is unreachable
- Declarative manifest drives the launch command line
- Centralized logging
"""

__all__ = []
