"""GRAS manifest synthesis.

Turns CLI flags, encoded strings and interactive answers into an assembled
GRAS document that is either deployed as Helm values or rendered as a
GrappleApplicationSet manifest.
"""
