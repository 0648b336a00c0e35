"""
edna_compare
Compares eDNA occurrence results for one sample across PCR approaches
(singleplex vs multiplex) and genetic markers.
"""

__version__ = "0.1.0"
