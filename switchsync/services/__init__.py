"""
SwitchSync Services

- catalog: device metadata and topology
- gateway: remote API access
- reconcile: diff, write and verify
"""
