"""External tool integrations.

Wrappers around the tools autorip hands work to, kept behind small
interfaces so the polling loop can be tested with fakes.
"""
